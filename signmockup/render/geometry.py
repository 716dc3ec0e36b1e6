from __future__ import annotations

from signmockup.models import Anchor, Rect, Shape, ShapeKind


class RectArena:
    """Shape rectangles of one render, kept in declaration order."""

    def __init__(self) -> None:
        self._slots: list[tuple[str, Rect]] = []
        self._index: dict[str, int] = {}

    def add(self, shape_id: str, rect: Rect) -> None:
        if shape_id in self._index:
            self._slots[self._index[shape_id]] = (shape_id, rect)
            return
        self._index[shape_id] = len(self._slots)
        self._slots.append((shape_id, rect))

    def get(self, shape_id: str | None) -> Rect | None:
        if shape_id is None:
            return None
        slot = self._index.get(shape_id)
        if slot is None:
            return None
        return self._slots[slot][1]

    def __contains__(self, shape_id: object) -> bool:
        return shape_id in self._index

    def __len__(self) -> int:
        return len(self._slots)

    def as_dict(self) -> dict[str, Rect]:
        return {shape_id: rect for shape_id, rect in self._slots}


def resolve_width(width: float | str, canvas_width: float, scale: float) -> float:
    if isinstance(width, str):
        text = width.strip()
        if text.endswith("%"):
            return float(text[:-1]) / 100.0 * canvas_width
        return float(text) * scale
    return float(width or 0) * scale


def corner_radius(shape: Shape, height: float, scale: float) -> float:
    """Explicit radius wins; otherwise pills round to half their height."""
    if shape.radius is not None:
        return float(shape.radius) * scale
    if shape.kind is ShapeKind.PILL:
        return height / 2.0
    if shape.kind is ShapeKind.BAR or shape.kind is ShapeKind.BOX:
        return 0.0
    raise ValueError(f"unknown shape kind: {shape.kind!r}")


def _anchor_origin(anchor: Anchor, cw: float, ch: float, w: float, h: float) -> tuple[float, float]:
    if anchor is Anchor.TOP:
        return (cw - w) / 2, 0.0
    if anchor is Anchor.BOTTOM:
        return (cw - w) / 2, ch - h
    if anchor is Anchor.LEFT:
        return 0.0, (ch - h) / 2
    if anchor is Anchor.RIGHT:
        return cw - w, (ch - h) / 2
    if anchor is Anchor.CENTER:
        return (cw - w) / 2, (ch - h) / 2
    if anchor is Anchor.BOTTOM_RIGHT:
        return cw - w, ch - h
    if anchor is Anchor.TOP_RIGHT:
        return cw - w, 0.0
    raise ValueError(f"unknown anchor: {anchor!r}")


def place_shape(
    shape: Shape,
    canvas_size: tuple[float, float],
    resolved: RectArena,
    scale: float = 1.0,
) -> Rect:
    cw, ch = canvas_size
    w = resolve_width(shape.width, cw, scale)
    h = float(shape.height or 0) * scale
    offset_x = float(shape.offset_x or 0) * scale
    offset_y = float(shape.offset_y or 0) * scale

    anchor_x, anchor_y = _anchor_origin(shape.anchor, cw, ch, w, h)
    x = offset_x + anchor_x
    y = offset_y + anchor_y

    parent = resolved.get(shape.parent)
    if parent is not None:
        x = parent.x + (parent.width - w) / 2 + offset_x
        y = parent.y + parent.height + offset_y

    return Rect(x=x, y=y, width=w, height=h)
