from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, ImageOps

from signmockup.constants import HEIF_EXTENSIONS, STANDARD_EXTENSIONS

_HEIF_REGISTERED = False


def _register_heif_opener() -> bool:
    global _HEIF_REGISTERED
    if _HEIF_REGISTERED:
        return True
    try:
        from pillow_heif import register_heif_opener
    except ImportError:
        return False
    register_heif_opener()
    _HEIF_REGISTERED = True
    return True


def _normalize(image: Image.Image) -> Image.Image:
    """Apply EXIF orientation and detach from the source file."""
    transposed = ImageOps.exif_transpose(image)
    if transposed.mode not in ("RGB", "RGBA"):
        transposed = transposed.convert("RGBA" if "A" in transposed.getbands() else "RGB")
    return transposed.copy()


def decode_image(path: Path) -> Image.Image:
    ext = path.suffix.lower()
    if ext in HEIF_EXTENSIONS:
        if not _register_heif_opener():
            raise RuntimeError("pillow-heif is required to decode HEIF/HEIC/HIF")
    elif ext not in STANDARD_EXTENSIONS:
        raise RuntimeError(f"unsupported image format: {path.suffix}")
    with Image.open(path) as image:
        return _normalize(image)


def decode_image_bytes(data: bytes) -> Image.Image:
    """Decode an in-memory upload; HEIF is accepted when pillow-heif is installed."""
    if not data:
        raise RuntimeError("image data is empty")
    _register_heif_opener()
    with Image.open(io.BytesIO(data)) as image:
        return _normalize(image)
