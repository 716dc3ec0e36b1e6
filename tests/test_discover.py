from pathlib import Path

from signmockup.discover import discover_photos


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_discover_filters_extensions_and_output_dir(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.JPG")
    b = _touch(tmp_path / "b.heic")
    _touch(tmp_path / "notes.txt")
    nested = _touch(tmp_path / "sub" / "c.png")
    _touch(tmp_path / "output" / "a__x.jpg")

    assert discover_photos(tmp_path) == [a, b]
    assert discover_photos(tmp_path, recursive=True, exclude_dir=tmp_path / "output") == [a, b, nested]


def test_discover_single_file(tmp_path: Path) -> None:
    photo = _touch(tmp_path / "fachada.webp")
    text = _touch(tmp_path / "fachada.txt")

    assert discover_photos(photo) == [photo]
    assert discover_photos(text) == []
    assert discover_photos(tmp_path / "missing") == []
