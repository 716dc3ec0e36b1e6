"""Color parsing, WCAG luminance/contrast and region color sampling."""
from __future__ import annotations

import math
from dataclasses import dataclass

from PIL import Image, ImageColor

from signmockup.constants import DOMINANT_SAMPLE_TARGET, EXTREMES_SAMPLE_TARGET
from signmockup.models import Rect

RGB = tuple[int, int, int]

_FALLBACK_LIGHT: RGB = (255, 255, 255)
_FALLBACK_DARK: RGB = (0, 0, 0)


@dataclass(frozen=True, slots=True)
class Extremes:
    light: RGB
    dark: RGB

    @property
    def light_hex(self) -> str:
        return to_hex(self.light)

    @property
    def dark_hex(self) -> str:
        return to_hex(self.dark)


def parse_color(value: str | RGB) -> RGB:
    if isinstance(value, tuple):
        return int(value[0]), int(value[1]), int(value[2])
    text = (value or "").strip()
    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        return _FALLBACK_DARK
    return int(rgb[0]), int(rgb[1]), int(rgb[2])


def to_hex(rgb: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(int(rgb[0]), int(rgb[1]), int(rgb[2]))


def _linear_channel(value: int) -> float:
    c = value / 255.0
    if c <= 0.03928:
        return c / 12.92
    return math.pow((c + 0.055) / 1.055, 2.4)


def luminance(color: str | RGB) -> float:
    r, g, b = parse_color(color)
    return 0.2126 * _linear_channel(r) + 0.7152 * _linear_channel(g) + 0.0722 * _linear_channel(b)


def contrast_ratio(color_a: str | RGB, color_b: str | RGB) -> float:
    lum_a = luminance(color_a)
    lum_b = luminance(color_b)
    return (max(lum_a, lum_b) + 0.05) / (min(lum_a, lum_b) + 0.05)


def _region_bytes(pixels: Image.Image, region: Rect | None) -> bytes:
    """RGBA bytes of the region clipped to the image, row-major."""
    width, height = pixels.size
    if region is None:
        box = (0, 0, width, height)
    else:
        left, top, right, bottom = region.to_box()
        box = (max(0, left), max(0, top), min(width, right), min(height, bottom))
    if box[2] <= box[0] or box[3] <= box[1]:
        return b""
    crop = pixels.crop(box)
    if crop.mode != "RGBA":
        crop = crop.convert("RGBA")
    return crop.tobytes()


def extract_extremes(pixels: Image.Image, region: Rect | None = None) -> Extremes:
    data = _region_bytes(pixels, region)
    count = len(data) // 4
    if count == 0:
        return Extremes(light=_FALLBACK_LIGHT, dark=_FALLBACK_DARK)

    stride = max(1, count // EXTREMES_SAMPLE_TARGET)
    light = _FALLBACK_LIGHT
    dark = _FALLBACK_DARK
    light_lum = -1.0
    dark_lum = 2.0
    for offset in range(0, count * 4, stride * 4):
        rgb = (data[offset], data[offset + 1], data[offset + 2])
        lum = luminance(rgb)
        if lum > light_lum:
            light_lum = lum
            light = rgb
        if lum < dark_lum:
            dark_lum = lum
            dark = rgb
    return Extremes(light=light, dark=dark)


def _bucket(value: int) -> int:
    return int(math.floor(value / 32.0 + 0.5)) * 32


def extract_dominant_colors(pixels: Image.Image, k: int = 3, region: Rect | None = None) -> list[str]:
    if k <= 0:
        return []
    data = _region_bytes(pixels, region)
    count = len(data) // 4
    if count == 0:
        return []

    stride = max(1, count // DOMINANT_SAMPLE_TARGET)
    buckets: dict[RGB, list] = {}
    for offset in range(0, count * 4, stride * 4):
        r, g, b, a = data[offset], data[offset + 1], data[offset + 2], data[offset + 3]
        if a < 128:
            continue
        if r > 245 and g > 245 and b > 245:
            continue
        if r < 10 and g < 10 and b < 10:
            continue
        if max(r, g, b) - min(r, g, b) < 20:
            continue
        key = (_bucket(r), _bucket(g), _bucket(b))
        entry = buckets.get(key)
        if entry is None:
            buckets[key] = [1, (r, g, b)]
        else:
            entry[0] += 1

    ranked = sorted(buckets.values(), key=lambda entry: entry[0], reverse=True)
    return [to_hex(entry[1]) for entry in ranked[:k]]
