from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from PIL import Image

from signmockup.constants import (
    CONTRAST_THRESHOLD,
    LINE_HEIGHT_FACTOR,
    ORPHAN_WIDTH_RATIO,
    SHADOW_BLUR,
    SHADOW_COLOR,
    SHADOW_OFFSET,
    STROKE_DARK,
    STROKE_LIGHT,
    VERTICAL_GLYPH_FACTOR,
)
from signmockup.models import (
    Adjustments,
    Align,
    Orientation,
    Rect,
    RenderOptions,
    ResolvedPalette,
    TextBox,
    TextPlacement,
    VerticalAlign,
)
from signmockup.render.colors import luminance
from signmockup.render.palette import resolve_text_color
from signmockup.render.surface import RGBA, Surface, TextShadow

LOGGER = logging.getLogger(__name__)

Measure = Callable[[str], float]

_ALIGN_ANCHORS = {
    Align.LEFT: "ls",
    Align.CENTER: "ms",
    Align.RIGHT: "rs",
}


@dataclass(frozen=True, slots=True)
class FitResult:
    size: float
    lines: list[str]


def effective_flag(capability: bool, permission: bool) -> bool:
    """An effect is drawn only when the box declares it and the user allows it."""
    return bool(capability) and bool(permission)


def pixel_size(size: float, scale: float) -> int:
    return max(1, int(round(size * scale)))


def wrap_words(text: str, measure: Measure, max_width: float) -> list[str]:
    words = text.split()
    if not words:
        return []
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    lines.append(current)
    return lines


def balance_orphan(
    lines: list[str],
    words: list[str],
    measure: Measure,
    max_width: float,
    ratio: float = ORPHAN_WIDTH_RATIO,
) -> list[str]:
    """Pull the second-to-last word down when a two-line wrap leaves one short word alone.

    The re-split is only taken when both new lines still fit.
    """
    if len(lines) != 2 or len(words) < 3 or lines[1] != words[-1]:
        return lines
    last_word_width = measure(f" {words[-1]}")
    if measure(lines[0]) <= last_word_width * ratio:
        return lines
    first = " ".join(words[:-2])
    second = f"{words[-2]} {words[-1]}"
    if not first or measure(first) > max_width or measure(second) > max_width:
        return lines
    return [first, second]


def fit_text(
    text: str,
    measure_at: Callable[[float], Measure],
    max_width: float,
    *,
    min_size: float,
    max_size: float,
    max_lines: int,
    orphan_ratio: float = ORPHAN_WIDTH_RATIO,
) -> FitResult:
    """Largest size in [min_size, max_size], stepping by 1, whose wrap fits max_lines.

    When nothing fits the text is laid out at min_size anyway.
    """
    words = text.split()
    size = max(min_size, max_size)
    while True:
        measure = measure_at(size)
        lines = wrap_words(text, measure, max_width)
        if len(lines) <= max_lines or size <= min_size:
            break
        size = max(min_size, size - 1)
    lines = balance_orphan(lines, words, measure, max_width, orphan_ratio)
    return FitResult(size=size, lines=lines)


def _vertical_start(vertical_align: VerticalAlign, rect: Rect, total_height: float, px: int) -> float:
    if vertical_align is VerticalAlign.TOP:
        return rect.y + px
    if vertical_align is VerticalAlign.BOTTOM:
        return rect.y + rect.height - total_height + px
    return rect.y + (rect.height - total_height) / 2 + px


def _horizontal_start(align: Align, rect: Rect) -> float:
    if align is Align.LEFT:
        return rect.x
    if align is Align.RIGHT:
        return rect.x + rect.width
    return rect.x + rect.width / 2


def stroke_color_for(fill: str) -> RGBA:
    return STROKE_DARK if luminance(fill) > 0.5 else STROKE_LIGHT


def layout_and_draw(
    surface: Surface,
    text_box: TextBox,
    content: str,
    container: Rect,
    adjustments: Adjustments,
    palette: ResolvedPalette,
    background: Image.Image,
    options: RenderOptions | None = None,
    scale: float = 1.0,
) -> TextPlacement | None:
    options = options or RenderOptions()
    if not content:
        return None
    display_text = content.upper() if effective_flag(text_box.upper, adjustments.is_upper) else content
    rect = container.inset(float(text_box.padding or 0) * scale)
    weight = int(text_box.weight or 400)

    def measure_at(size: float) -> Measure:
        px = pixel_size(size, scale)
        return lambda value: surface.measure_text(value, px, weight)

    fit = fit_text(
        display_text,
        measure_at,
        rect.width,
        min_size=text_box.min_size,
        max_size=text_box.max_size,
        max_lines=max(1, int(text_box.max_lines)),
        orphan_ratio=options.orphan_width_ratio,
    )
    px = pixel_size(fit.size, scale)
    if len(fit.lines) > text_box.max_lines:
        LOGGER.debug("%s overflows %d lines at min size %s", text_box.id.value, text_box.max_lines, fit.size)

    color = resolve_text_color(
        text_box,
        rect,
        palette,
        background,
        threshold=options.contrast_threshold or CONTRAST_THRESHOLD,
    )

    shadow = None
    if effective_flag(text_box.shadow, adjustments.has_shadow):
        shadow = TextShadow(color=SHADOW_COLOR, blur=SHADOW_BLUR * scale, offset=SHADOW_OFFSET * scale)
    stroke = stroke_color_for(color) if effective_flag(text_box.stroke, adjustments.has_stroke) else None

    x_start = _horizontal_start(text_box.align, rect)

    if text_box.orientation is Orientation.VERTICAL:
        glyphs = list(display_text)
        step = px * VERTICAL_GLYPH_FACTOR
        y_start = rect.y + (rect.height - len(glyphs) * step) / 2 + px
        for index, glyph in enumerate(glyphs):
            surface.draw_text(
                glyph,
                (x_start, y_start + index * step),
                size=px,
                weight=weight,
                fill=color,
                anchor="ms",
                shadow=shadow,
                stroke=stroke,
            )
        return TextPlacement(
            slot=text_box.id,
            lines=glyphs,
            font_size=fit.size,
            pixel_size=px,
            color=color,
            origin=(x_start, y_start),
            orientation=Orientation.VERTICAL,
        )
    if text_box.orientation is not Orientation.HORIZONTAL:
        raise ValueError(f"unknown orientation: {text_box.orientation!r}")

    line_height = px * LINE_HEIGHT_FACTOR
    total_height = len(fit.lines) * line_height
    y_start = _vertical_start(text_box.vertical_align, rect, total_height, px)
    anchor = _ALIGN_ANCHORS[text_box.align]
    for index, line in enumerate(fit.lines):
        surface.draw_text(
            line,
            (x_start, y_start + index * line_height),
            size=px,
            weight=weight,
            fill=color,
            anchor=anchor,
            shadow=shadow,
            stroke=stroke,
        )
    return TextPlacement(
        slot=text_box.id,
        lines=list(fit.lines),
        font_size=fit.size,
        pixel_size=px,
        color=color,
        origin=(x_start, y_start),
    )
