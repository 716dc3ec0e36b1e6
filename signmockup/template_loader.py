from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from signmockup.constants import BRAND_ACCENT, FREE_AREA
from signmockup.models import (
    Align,
    Anchor,
    Orientation,
    Palette,
    PaletteMode,
    Shape,
    ShapeKind,
    TemplateSpec,
    TextBox,
    TextSlot,
    VerticalAlign,
)

_TEMPLATE_SUFFIXES = (".yaml", ".yml", ".json")


class TemplateError(ValueError):
    pass


def _get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key; templates may use camelCase or snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _enum(enum_cls, value: Any, where: str, default=None):
    if value is None:
        if default is None:
            raise TemplateError(f"{where}: missing {enum_cls.__name__}")
        return default
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in enum_cls)
        raise TemplateError(f"{where}: invalid value {value!r} (expected one of {choices})") from exc


def _number(value: Any, where: str, default: float = 0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise TemplateError(f"{where}: not a number: {value!r}") from exc


def _width(value: Any, where: str) -> float | str:
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            _number(text[:-1], where)
            return text
        return _number(text, where)
    return _number(value, where)


def _normalize_palette(value: Any, where: str) -> PaletteMode | Palette:
    if isinstance(value, dict):
        background = _get(value, "background", "bg")
        foreground = _get(value, "foreground", "fg")
        if not background or not foreground:
            raise TemplateError(f"{where}: fixed palette needs background and foreground")
        accent = _get(value, "accent", default=BRAND_ACCENT)
        return Palette(background=str(background), foreground=str(foreground), accent=str(accent))
    return _enum(PaletteMode, value, where, default=PaletteMode.AUTO)


def normalize_shape_dict(data: dict[str, Any], index: int) -> Shape:
    where = f"shapes[{index}]"
    shape_id = str(data.get("id") or "").strip()
    if not shape_id:
        raise TemplateError(f"{where}: missing id")
    where = f"shape {shape_id!r}"
    radius = _get(data, "radius")
    parent = _get(data, "parent")
    return Shape(
        id=shape_id,
        kind=_enum(ShapeKind, data.get("kind"), where),
        anchor=_enum(Anchor, data.get("anchor"), where),
        width=_width(data.get("width"), f"{where}.width"),
        height=_number(data.get("height"), f"{where}.height"),
        parent=str(parent) if parent else None,
        radius=None if radius is None else _number(radius, f"{where}.radius"),
        opacity=max(0.0, min(1.0, _number(data.get("opacity"), f"{where}.opacity", 1.0))),
        offset_x=_number(_get(data, "offset_x", "offsetX"), f"{where}.offset_x"),
        offset_y=_number(_get(data, "offset_y", "offsetY"), f"{where}.offset_y"),
    )


def normalize_text_dict(data: dict[str, Any], index: int) -> TextBox:
    where = f"text[{index}]"
    slot = _enum(TextSlot, data.get("id"), where)
    where = f"text {slot.value!r}"
    min_size = _number(_get(data, "min_size", "minSize"), f"{where}.min_size", 12)
    max_size = _number(_get(data, "max_size", "maxSize"), f"{where}.max_size", min_size)
    color = data.get("color")
    return TextBox(
        id=slot,
        area=str(data.get("area") or FREE_AREA),
        align=_enum(Align, data.get("align"), where, default=Align.CENTER),
        vertical_align=_enum(
            VerticalAlign,
            _get(data, "vertical_align", "verticalAlign"),
            where,
            default=VerticalAlign.MIDDLE,
        ),
        orientation=_enum(Orientation, data.get("orientation"), where, default=Orientation.HORIZONTAL),
        max_lines=int(_number(_get(data, "max_lines", "maxLines"), f"{where}.max_lines", 1)),
        min_size=min_size,
        max_size=max_size,
        weight=int(_number(data.get("weight"), f"{where}.weight", 400)),
        upper=bool(data.get("upper", False)),
        shadow=bool(data.get("shadow", False)),
        stroke=bool(data.get("stroke", False)),
        padding=_number(data.get("padding"), f"{where}.padding"),
        color=str(color) if color else None,
    )


def normalize_template_dict(data: dict[str, Any], fallback_id: str = "custom") -> TemplateSpec:
    template_id = str(data.get("id") or fallback_id).strip()
    shapes_raw = data.get("shapes") or []
    text_raw = data.get("text") or []
    if not isinstance(shapes_raw, list) or not isinstance(text_raw, list):
        raise TemplateError(f"template {template_id!r}: shapes and text must be lists")
    spec = TemplateSpec(
        id=template_id,
        name=str(data.get("name") or template_id),
        palette=_normalize_palette(data.get("palette"), f"template {template_id!r}.palette"),
        shapes=tuple(normalize_shape_dict(item, index) for index, item in enumerate(shapes_raw)),
        text=tuple(normalize_text_dict(item, index) for index, item in enumerate(text_raw)),
    )
    validate_template(spec)
    return spec


def validate_template(spec: TemplateSpec) -> None:
    """Reject specs the renderer cannot place in one ordered pass.

    Shape ids must be unique and a parent must be declared before its child.
    Text areas naming unknown shapes are allowed; those boxes are skipped.
    """
    seen: set[str] = set()
    for shape in spec.shapes:
        if shape.id in seen:
            raise TemplateError(f"template {spec.id!r}: duplicate shape id {shape.id!r}")
        if shape.parent is not None and shape.parent not in seen:
            raise TemplateError(
                f"template {spec.id!r}: shape {shape.id!r} references parent {shape.parent!r} "
                "which is not declared before it"
            )
        seen.add(shape.id)
    for box in spec.text:
        if box.min_size > box.max_size:
            raise TemplateError(
                f"template {spec.id!r}: text {box.id.value!r} min_size {box.min_size} > max_size {box.max_size}"
            )
        if box.max_lines < 1:
            raise TemplateError(f"template {spec.id!r}: text {box.id.value!r} needs max_lines >= 1")


def _parse_text(text: str, suffix: str, where: str) -> dict[str, Any]:
    if suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise TemplateError(f"template file is not a dict: {where}")
    return data


def _load_file(path: Path) -> dict[str, Any]:
    return _parse_text(path.read_text(encoding="utf-8"), path.suffix.lower(), str(path))


def _builtin_files():
    pkg = resources.files("signmockup.templates")
    return sorted(
        (item for item in pkg.iterdir() if item.name.endswith(_TEMPLATE_SUFFIXES)),
        key=lambda item: item.name,
    )


def _load_builtin(template_id: str) -> dict[str, Any]:
    pkg = resources.files("signmockup.templates")
    for suffix in _TEMPLATE_SUFFIXES:
        candidate = pkg / f"{template_id}{suffix}"
        if candidate.is_file():
            return _parse_text(candidate.read_text(encoding="utf-8"), suffix, candidate.name)
    raise FileNotFoundError(f"built-in template not found: {template_id}")


def list_builtin_templates() -> list[str]:
    return sorted({Path(item.name).stem for item in _builtin_files()})


def load_builtin_catalog() -> list[TemplateSpec]:
    """All built-in presets, in their catalog order."""
    specs = []
    for item in _builtin_files():
        suffix = Path(item.name).suffix.lower()
        raw = _parse_text(item.read_text(encoding="utf-8"), suffix, item.name)
        specs.append(normalize_template_dict(raw, fallback_id=Path(item.name).stem))
    specs.sort(key=lambda spec: (_catalog_order(spec.id), spec.id))
    return specs


_CATALOG_ORDER = (
    "centralizado-premium",
    "tarja-superior-solida",
    "tarja-lateral-esquerda",
    "telefone-destaque",
    "slogan-inferior",
    "caixa-de-info",
    "adesivo-vitrine",
)


def _catalog_order(template_id: str) -> int:
    try:
        return _CATALOG_ORDER.index(template_id)
    except ValueError:
        return len(_CATALOG_ORDER)


def load_template(template_id_or_path: str | Path) -> TemplateSpec:
    path = Path(template_id_or_path)
    if path.suffix.lower() in _TEMPLATE_SUFFIXES and path.exists():
        return normalize_template_dict(_load_file(path), fallback_id=path.stem)
    template_id = str(template_id_or_path)
    return normalize_template_dict(_load_builtin(template_id), fallback_id=template_id)
