import pytest

from signmockup.models import Anchor, Rect, Shape, ShapeKind
from signmockup.render.geometry import RectArena, corner_radius, place_shape, resolve_width


def _shape(**overrides) -> Shape:
    values = {"id": "box", "kind": ShapeKind.BAR, "anchor": Anchor.CENTER, "width": 200, "height": 100}
    values.update(overrides)
    return Shape(**values)


def test_center_anchor_centers_shape_on_canvas() -> None:
    rect = place_shape(_shape(width=800, height=72), (1200, 900), RectArena())

    assert rect.x + rect.width / 2 == pytest.approx(600)
    assert rect.y + rect.height / 2 == pytest.approx(450)


@pytest.mark.parametrize(
    ("anchor", "expected"),
    [
        (Anchor.TOP, (400, 0)),
        (Anchor.BOTTOM, (400, 400)),
        (Anchor.LEFT, (0, 200)),
        (Anchor.RIGHT, (800, 200)),
        (Anchor.CENTER, (400, 200)),
        (Anchor.BOTTOM_RIGHT, (800, 400)),
        (Anchor.TOP_RIGHT, (800, 0)),
    ],
)
def test_anchor_origins(anchor: Anchor, expected: tuple[int, int]) -> None:
    rect = place_shape(_shape(anchor=anchor), (1000, 500), RectArena())

    assert (rect.x, rect.y) == pytest.approx(expected)
    assert (rect.width, rect.height) == (200, 100)


def test_offsets_apply_after_anchor_placement() -> None:
    rect = place_shape(_shape(anchor=Anchor.BOTTOM_RIGHT, offset_x=-40, offset_y=-40), (1000, 500), RectArena())

    assert (rect.x, rect.y) == pytest.approx((760, 360))


def test_width_percentages_follow_canvas_and_numbers_follow_scale() -> None:
    assert resolve_width("30%", 1000, 0.5) == pytest.approx(300)
    assert resolve_width(800, 600, 0.5) == pytest.approx(400)
    assert resolve_width("120", 600, 0.5) == pytest.approx(60)

    rect = place_shape(_shape(anchor=Anchor.TOP, width="100%", height=96), (600, 400), RectArena(), scale=0.5)
    assert rect == Rect(0, 0, 600, 48)


def test_child_is_stacked_under_parent_regardless_of_anchor() -> None:
    arena = RectArena()
    parent = place_shape(_shape(id="banner", anchor=Anchor.LEFT, width="30%", height=300), (1000, 500), arena)
    arena.add("banner", parent)

    child = place_shape(
        _shape(id="phone-pill", kind=ShapeKind.PILL, anchor=Anchor.TOP_RIGHT, parent="banner", width=100, height=40, offset_y=-40),
        (1000, 500),
        arena,
    )

    assert child.y == pytest.approx(parent.y + parent.height - 40)
    assert child.x + child.width / 2 == pytest.approx(parent.x + parent.width / 2)


def test_unknown_parent_keeps_anchor_placement() -> None:
    rect = place_shape(_shape(anchor=Anchor.TOP, parent="missing"), (1000, 500), RectArena())

    assert (rect.x, rect.y) == pytest.approx((400, 0))


def test_corner_radius_conventions() -> None:
    assert corner_radius(_shape(kind=ShapeKind.PILL), 40, 1.0) == 20
    assert corner_radius(_shape(kind=ShapeKind.BAR), 40, 1.0) == 0
    assert corner_radius(_shape(kind=ShapeKind.BOX, radius=16), 40, 0.5) == 8
    # large radii are passed through untouched
    assert corner_radius(_shape(kind=ShapeKind.PILL, radius=90), 40, 1.0) == 90


def test_rect_arena_keeps_declaration_order() -> None:
    arena = RectArena()
    arena.add("b", Rect(0, 0, 1, 1))
    arena.add("a", Rect(1, 1, 1, 1))

    assert list(arena.as_dict()) == ["b", "a"]
    assert "a" in arena
    assert arena.get("c") is None
    assert arena.get(None) is None
    assert len(arena) == 2
