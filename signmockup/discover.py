from __future__ import annotations

from pathlib import Path

from signmockup.constants import SUPPORTED_EXTENSIONS


def _is_within(path: Path, directory: Path | None) -> bool:
    if directory is None:
        return False
    try:
        path.resolve(strict=False).relative_to(directory.resolve(strict=False))
    except ValueError:
        return False
    return True


def discover_photos(
    input_path: Path,
    recursive: bool = False,
    exclude_dir: Path | None = None,
) -> list[Path]:
    """Storefront photos under input_path, skipping anything inside exclude_dir."""
    if input_path.is_file():
        return [input_path] if input_path.suffix.lower() in SUPPORTED_EXTENSIONS else []
    if not input_path.is_dir():
        return []
    candidates = input_path.rglob("*") if recursive else input_path.iterdir()
    return sorted(
        path
        for path in candidates
        if path.is_file()
        and path.suffix.lower() in SUPPORTED_EXTENSIONS
        and not _is_within(path, exclude_dir)
    )
