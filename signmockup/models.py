from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import Image

from signmockup.constants import (
    BRAND_ACCENT,
    CONTRAST_THRESHOLD,
    FREE_AREA,
    ORPHAN_WIDTH_RATIO,
    REFERENCE_CANVAS_WIDTH,
)


class ShapeKind(str, Enum):
    BAR = "bar"
    PILL = "pill"
    BOX = "box"


class Anchor(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    BOTTOM_RIGHT = "bottom-right"
    TOP_RIGHT = "top-right"


class TextSlot(str, Enum):
    TITLE = "title"
    SUBTITLE = "subtitle"
    PHONE = "phone"


class Align(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class VerticalAlign(str, Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class PaletteMode(str, Enum):
    AUTO = "auto"
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def inset(self, amount: float) -> Rect:
        return Rect(
            x=self.x + amount,
            y=self.y + amount,
            width=self.width - 2 * amount,
            height=self.height - 2 * amount,
        )

    def to_box(self) -> tuple[int, int, int, int]:
        """Integer pixel box (left, top, right, bottom) for Pillow calls."""
        left = int(round(self.x))
        top = int(round(self.y))
        return left, top, left + int(round(self.width)), top + int(round(self.height))


@dataclass(frozen=True, slots=True)
class Palette:
    background: str
    foreground: str
    accent: str = BRAND_ACCENT


# One palette per render; same shape as a fixed template palette.
ResolvedPalette = Palette


@dataclass(frozen=True, slots=True)
class Shape:
    id: str
    kind: ShapeKind
    anchor: Anchor
    width: float | str = 0
    height: float = 0
    parent: str | None = None
    radius: float | None = None
    opacity: float = 1.0
    offset_x: float = 0
    offset_y: float = 0


@dataclass(frozen=True, slots=True)
class TextBox:
    id: TextSlot
    area: str
    align: Align
    max_lines: int
    min_size: float
    max_size: float
    padding: float = 0
    vertical_align: VerticalAlign = VerticalAlign.MIDDLE
    orientation: Orientation = Orientation.HORIZONTAL
    weight: int = 400
    upper: bool = False
    shadow: bool = False
    stroke: bool = False
    color: str | None = None

    @property
    def is_free(self) -> bool:
        return self.area == FREE_AREA


@dataclass(frozen=True, slots=True)
class TemplateSpec:
    id: str
    name: str
    palette: PaletteMode | Palette
    shapes: tuple[Shape, ...] = ()
    text: tuple[TextBox, ...] = ()


@dataclass(frozen=True, slots=True)
class TextContent:
    title: str = ""
    subtitle: str = ""
    phone: str = ""

    def for_slot(self, slot: TextSlot) -> str:
        return getattr(self, slot.value) or ""


@dataclass(frozen=True, slots=True)
class Adjustments:
    is_upper: bool = True
    has_shadow: bool = True
    has_stroke: bool = False
    palette: PaletteMode = PaletteMode.AUTO


@dataclass(frozen=True, slots=True)
class RenderOptions:
    reference_width: int = REFERENCE_CANVAS_WIDTH
    contrast_threshold: float = CONTRAST_THRESHOLD
    orphan_width_ratio: float = ORPHAN_WIDTH_RATIO
    font_path: Path | None = None


@dataclass(slots=True)
class TextPlacement:
    slot: TextSlot
    lines: list[str]
    font_size: float
    pixel_size: int
    color: str
    origin: tuple[float, float]
    orientation: Orientation = Orientation.HORIZONTAL


@dataclass(slots=True)
class RenderResult:
    image: Image.Image
    palette: ResolvedPalette
    scale: float
    shape_rects: dict[str, Rect] = field(default_factory=dict)
    placements: list[TextPlacement] = field(default_factory=list)

    def placement_for(self, slot: TextSlot) -> TextPlacement | None:
        for placement in self.placements:
            if placement.slot == slot:
                return placement
        return None
