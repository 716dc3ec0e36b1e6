from __future__ import annotations

from PIL import Image


def canvas_size_for(image_size: tuple[int, int], reference_width: int) -> tuple[int, int]:
    """Working canvas size: at most reference_width wide, never upscaled."""
    width, height = image_size
    if width <= 0 or height <= 0:
        raise ValueError(f"image has no pixels: {width}x{height}")
    if reference_width <= 0 or width <= reference_width:
        return width, height
    scale = reference_width / float(width)
    return reference_width, max(1, int(round(height * scale)))


def fit_to_reference_width(image: Image.Image, reference_width: int) -> Image.Image:
    target = canvas_size_for(image.size, reference_width)
    if target == image.size:
        return image.copy()
    return image.resize(target, Image.Resampling.LANCZOS)
