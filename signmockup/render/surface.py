"""Raster surface used by the renderer.

The engine only talks to :class:`Surface`; :class:`PillowSurface` is the
software implementation backed by a Pillow RGBA image.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw, ImageFilter

from signmockup.models import Rect
from signmockup.render.colors import parse_color
from signmockup.render.typography import load_font

RGBA = tuple[int, int, int, int]


@dataclass(frozen=True, slots=True)
class TextShadow:
    color: RGBA
    blur: float
    offset: float


class Surface(Protocol):
    @property
    def size(self) -> tuple[int, int]: ...

    def draw_image(self, image: Image.Image) -> None: ...

    def fill_rounded_rect(self, rect: Rect, radius: float, color: str, opacity: float) -> None: ...

    def measure_text(self, text: str, size: int, weight: int) -> float: ...

    def draw_text(
        self,
        text: str,
        xy: tuple[float, float],
        *,
        size: int,
        weight: int,
        fill: str,
        anchor: str,
        shadow: TextShadow | None = None,
        stroke: RGBA | None = None,
    ) -> None: ...

    def read_region(self, region: Rect | None = None) -> Image.Image: ...


class PillowSurface:
    def __init__(self, width: int, height: int, font_path: Path | None = None) -> None:
        self._canvas = Image.new("RGBA", (max(1, int(width)), max(1, int(height))), (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self._canvas)
        self._font_path = font_path

    @property
    def size(self) -> tuple[int, int]:
        return self._canvas.size

    @property
    def image(self) -> Image.Image:
        return self._canvas

    def _font(self, size: int, weight: int):
        return load_font(self._font_path, max(1, int(size)), int(weight))

    def _composite(self, layer: Image.Image, left: int, top: int) -> None:
        """alpha_composite that tolerates layers hanging off any canvas edge."""
        src_x = max(0, -left)
        src_y = max(0, -top)
        if src_x >= layer.width or src_y >= layer.height:
            return
        dest_x = max(0, left)
        dest_y = max(0, top)
        if dest_x >= self._canvas.width or dest_y >= self._canvas.height:
            return
        self._canvas.alpha_composite(layer, dest=(dest_x, dest_y), source=(src_x, src_y))

    def draw_image(self, image: Image.Image) -> None:
        source = image.convert("RGBA")
        if source.size != self._canvas.size:
            source = source.resize(self._canvas.size, Image.Resampling.LANCZOS)
        self._canvas.paste(source, (0, 0))

    def fill_rounded_rect(self, rect: Rect, radius: float, color: str, opacity: float) -> None:
        left, top, right, bottom = rect.to_box()
        width = right - left
        height = bottom - top
        if width <= 0 or height <= 0:
            return
        alpha = int(round(max(0.0, min(1.0, opacity)) * 255))
        if alpha <= 0:
            return
        r, g, b = parse_color(color)
        layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        ImageDraw.Draw(layer).rounded_rectangle(
            (0, 0, width - 1, height - 1),
            radius=max(0, int(round(radius))),
            fill=(r, g, b, alpha),
        )
        self._composite(layer, left, top)

    def measure_text(self, text: str, size: int, weight: int) -> float:
        if not text:
            return 0.0
        return float(self._draw.textlength(text, font=self._font(size, weight)))

    def _text_layer(
        self,
        text: str,
        xy: tuple[float, float],
        font,
        anchor: str,
        fill: RGBA,
        margin: int,
        stroke: RGBA | None = None,
    ) -> tuple[Image.Image, int, int]:
        stroke_width = 1 if stroke is not None else 0
        box = self._draw.textbbox(xy, text, font=font, anchor=anchor, stroke_width=stroke_width)
        left = int(math.floor(box[0])) - margin
        top = int(math.floor(box[1])) - margin
        right = int(math.ceil(box[2])) + margin
        bottom = int(math.ceil(box[3])) + margin
        layer = Image.new("RGBA", (max(1, right - left), max(1, bottom - top)), (0, 0, 0, 0))
        ImageDraw.Draw(layer).text(
            (xy[0] - left, xy[1] - top),
            text,
            font=font,
            anchor=anchor,
            fill=fill,
            stroke_width=stroke_width,
            stroke_fill=stroke,
        )
        return layer, left, top

    def draw_text(
        self,
        text: str,
        xy: tuple[float, float],
        *,
        size: int,
        weight: int,
        fill: str,
        anchor: str,
        shadow: TextShadow | None = None,
        stroke: RGBA | None = None,
    ) -> None:
        if not text:
            return
        font = self._font(size, weight)
        if shadow is not None:
            margin = int(math.ceil(shadow.blur)) * 2
            shadow_xy = (xy[0] + shadow.offset, xy[1] + shadow.offset)
            layer, left, top = self._text_layer(text, shadow_xy, font, anchor, shadow.color, margin)
            if shadow.blur > 0:
                layer = layer.filter(ImageFilter.GaussianBlur(radius=shadow.blur / 2.0))
            self._composite(layer, left, top)
        r, g, b = parse_color(fill)
        layer, left, top = self._text_layer(text, xy, font, anchor, (r, g, b, 255), 2, stroke=stroke)
        self._composite(layer, left, top)

    def read_region(self, region: Rect | None = None) -> Image.Image:
        if region is None:
            return self._canvas.copy()
        left, top, right, bottom = region.to_box()
        left = max(0, left)
        top = max(0, top)
        right = min(self._canvas.width, right)
        bottom = min(self._canvas.height, bottom)
        if right <= left or bottom <= top:
            return Image.new("RGBA", (0, 0))
        return self._canvas.crop((left, top, right, bottom))

    def to_image(self) -> Image.Image:
        return self._canvas.convert("RGB")
