from __future__ import annotations

import logging

from PIL import Image

from signmockup.constants import (
    BRAND_ACCENT,
    CONTRAST_THRESHOLD,
    DARK_PALETTE,
    LIGHT_PALETTE,
)
from signmockup.models import Palette, PaletteMode, Rect, ResolvedPalette, TemplateSpec, TextBox
from signmockup.render.colors import contrast_ratio, extract_extremes
from signmockup.render.surface import Surface

LOGGER = logging.getLogger(__name__)


def fixed_palette(mode: PaletteMode) -> ResolvedPalette:
    if mode is PaletteMode.LIGHT:
        return Palette(**LIGHT_PALETTE)
    if mode is PaletteMode.DARK:
        return Palette(**DARK_PALETTE)
    raise ValueError(f"palette mode has no fixed colors: {mode!r}")


def resolve_palette(surface: Surface, spec: TemplateSpec, palette_override: PaletteMode) -> ResolvedPalette:
    if palette_override in (PaletteMode.LIGHT, PaletteMode.DARK):
        return fixed_palette(palette_override)
    if isinstance(spec.palette, Palette):
        return spec.palette
    if spec.palette in (PaletteMode.LIGHT, PaletteMode.DARK):
        return fixed_palette(spec.palette)

    extremes = extract_extremes(surface.read_region(None))
    palette = Palette(background=extremes.dark_hex, foreground=extremes.light_hex, accent=BRAND_ACCENT)
    LOGGER.debug("auto palette for %s: %s", spec.id, palette)
    return palette


def resolve_text_color(
    text_box: TextBox,
    rect: Rect,
    palette: ResolvedPalette,
    background: Image.Image,
    threshold: float = CONTRAST_THRESHOLD,
) -> str:
    """Pick a legible fill for the box.

    Free text is checked against the darkest photo pixel under ``rect``,
    boxed text against the palette background. A failing foreground is
    swapped once for the palette background if that reads better.
    """
    if text_box.color:
        return text_box.color

    candidate = palette.foreground
    if text_box.is_free:
        compare_to = extract_extremes(background, rect).dark_hex
    else:
        compare_to = palette.background

    candidate_ratio = contrast_ratio(candidate, compare_to)
    if candidate_ratio >= threshold:
        return candidate

    alternative = palette.background
    alternative_ratio = contrast_ratio(alternative, compare_to)
    if alternative_ratio >= threshold or alternative_ratio > candidate_ratio:
        return alternative
    return candidate
