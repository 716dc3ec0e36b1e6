"""Template render orchestration.

``render_template`` is the synchronous entry point; ``render_template_async``
and :class:`PreviewRenderer` wrap it for hosts running an event loop.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from PIL import Image

from signmockup.constants import PHONE_SHAPE_ID
from signmockup.decoders.image_decoder import decode_image, decode_image_bytes
from signmockup.models import (
    Adjustments,
    Rect,
    RenderOptions,
    RenderResult,
    ResolvedPalette,
    Shape,
    ShapeKind,
    TemplateSpec,
    TextContent,
)
from signmockup.render.geometry import RectArena, corner_radius, place_shape
from signmockup.render.image_modes import fit_to_reference_width
from signmockup.render.palette import resolve_palette
from signmockup.render.surface import PillowSurface, Surface
from signmockup.render.text_layout import layout_and_draw
from signmockup.template_loader import validate_template

LOGGER = logging.getLogger(__name__)

ImageSource = Image.Image | Path | str | bytes


def shape_fill_color(shape: Shape, palette: ResolvedPalette) -> str:
    if shape.kind is ShapeKind.PILL and shape.id == PHONE_SHAPE_ID:
        return palette.accent
    return palette.background


def draw_template(
    surface: Surface | None,
    background: Image.Image,
    spec: TemplateSpec,
    texts: TextContent,
    adjustments: Adjustments,
    options: RenderOptions | None = None,
    scale: float = 1.0,
) -> RenderResult | None:
    """Draw background, shapes and text onto ``surface``.

    ``background`` must already be sized to the surface; it doubles as the
    pristine sampling source for free-area contrast checks.
    """
    if surface is None:
        LOGGER.debug("no drawing surface for template %s, skipping render", spec.id)
        return None
    return _draw_layers(surface, background, spec, texts, adjustments, options or RenderOptions(), scale)


def _draw_layers(
    surface: Surface,
    background: Image.Image,
    spec: TemplateSpec,
    texts: TextContent,
    adjustments: Adjustments,
    options: RenderOptions,
    scale: float,
) -> RenderResult:
    canvas_width, canvas_height = surface.size

    surface.draw_image(background)
    palette = resolve_palette(surface, spec, adjustments.palette)

    arena = RectArena()
    for shape in spec.shapes:
        try:
            rect = place_shape(shape, (canvas_width, canvas_height), arena, scale)
            surface.fill_rounded_rect(
                rect,
                corner_radius(shape, rect.height, scale),
                shape_fill_color(shape, palette),
                shape.opacity,
            )
        except Exception as exc:
            LOGGER.warning("shape %s of %s skipped: %s", shape.id, spec.id, exc)
            continue
        arena.add(shape.id, rect)

    placements = []
    for text_box in spec.text:
        content = texts.for_slot(text_box.id)
        if not content:
            continue
        if text_box.is_free:
            container = Rect(0, 0, canvas_width, canvas_height)
        else:
            container = arena.get(text_box.area)
            if container is None:
                LOGGER.debug("text %s targets unknown area %r, skipped", text_box.id.value, text_box.area)
                continue
        try:
            placement = layout_and_draw(
                surface,
                text_box,
                content,
                container,
                adjustments,
                palette,
                background,
                options,
                scale,
            )
        except Exception as exc:
            LOGGER.warning("text %s of %s skipped: %s", text_box.id.value, spec.id, exc)
            continue
        if placement is not None:
            placements.append(placement)

    return RenderResult(
        image=surface.read_region(None).convert("RGB"),
        palette=palette,
        scale=scale,
        shape_rects=arena.as_dict(),
        placements=placements,
    )


def render_template(
    image: Image.Image,
    spec: TemplateSpec,
    texts: TextContent,
    adjustments: Adjustments | None = None,
    options: RenderOptions | None = None,
) -> RenderResult:
    if image is None:
        raise ValueError("a background image is required")
    validate_template(spec)
    adjustments = adjustments or Adjustments()
    options = options or RenderOptions()

    background = fit_to_reference_width(image.convert("RGBA"), options.reference_width)
    scale = background.width / float(options.reference_width)
    surface = PillowSurface(background.width, background.height, font_path=options.font_path)
    LOGGER.debug(
        "render %s: source=%sx%s canvas=%sx%s scale=%.3f",
        spec.id,
        image.width,
        image.height,
        background.width,
        background.height,
        scale,
    )
    return _draw_layers(surface, background, spec, texts, adjustments, options, scale)


async def load_source(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray)):
        return await asyncio.to_thread(decode_image_bytes, bytes(source))
    return await asyncio.to_thread(decode_image, Path(source))


async def render_template_async(
    source: ImageSource,
    spec: TemplateSpec,
    texts: TextContent,
    adjustments: Adjustments | None = None,
    options: RenderOptions | None = None,
) -> RenderResult:
    image = await load_source(source)
    return await asyncio.to_thread(render_template, image, spec, texts, adjustments, options)


class PreviewRenderer:
    """Serializes live-preview renders; only the newest request gets a result.

    Each ``submit`` takes a generation number. Renders run one at a time and
    a render whose generation was superseded, before it started or while it
    ran, resolves to ``None``.
    """

    def __init__(self, options: RenderOptions | None = None) -> None:
        self._options = options
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    async def submit(
        self,
        source: ImageSource,
        spec: TemplateSpec,
        texts: TextContent,
        adjustments: Adjustments | None = None,
    ) -> RenderResult | None:
        self._generation += 1
        token = self._generation
        async with self._lock:
            if not self.is_current(token):
                LOGGER.debug("preview %d superseded before start", token)
                return None
            result = await render_template_async(source, spec, texts, adjustments, self._options)
        if not self.is_current(token):
            LOGGER.debug("preview %d superseded, dropping result", token)
            return None
        return result
