from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from signmockup.constants import (
    CONTRAST_THRESHOLD,
    DEFAULT_TEMPLATE_ID,
    ORPHAN_WIDTH_RATIO,
    REFERENCE_CANVAS_WIDTH,
)
from signmockup.models import Adjustments, PaletteMode, RenderOptions

DEFAULT_CONFIG: dict[str, Any] = {
    "template": DEFAULT_TEMPLATE_ID,
    "adjustments": {
        "is_upper": True,
        "has_shadow": True,
        "has_stroke": False,
        "palette": "auto",
    },
    "output_format": "jpeg",
    "quality": 90,
    "name_template": "{stem}__{template}.{ext}",
    "skip_existing": True,
    "reference_width": REFERENCE_CANVAS_WIDTH,
    "contrast_threshold": CONTRAST_THRESHOLD,
    "orphan_width_ratio": ORPHAN_WIDTH_RATIO,
    "font_path": None,
}


def get_user_data_dir() -> Path:
    """Per-user writable directory holding Config/ and user templates."""
    override = os.environ.get("SIGNMOCKUP_HOME")
    if override:
        return Path(override)

    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "SignMockup"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "SignMockup"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "SignMockup"
    return Path.home() / ".config" / "SignMockup"


def get_config_path() -> Path:
    return get_user_data_dir() / "Config" / "config.yaml"


def template_directory() -> Path:
    return get_user_data_dir() / "templates"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return _deep_merge(DEFAULT_CONFIG, loaded)


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg_path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path


def _parse_palette_mode(value: Any) -> PaletteMode:
    try:
        return PaletteMode(str(value or "auto").strip().lower())
    except ValueError as exc:
        raise ValueError(f"palette must be auto/light/dark, got: {value!r}") from exc


def adjustments_from_config(cfg: dict[str, Any]) -> Adjustments:
    raw = cfg.get("adjustments") or {}
    return Adjustments(
        is_upper=bool(raw.get("is_upper", True)),
        has_shadow=bool(raw.get("has_shadow", True)),
        has_stroke=bool(raw.get("has_stroke", False)),
        palette=_parse_palette_mode(raw.get("palette")),
    )


def render_options_from_config(cfg: dict[str, Any]) -> RenderOptions:
    font_path = cfg.get("font_path")
    return RenderOptions(
        reference_width=max(1, int(cfg.get("reference_width") or REFERENCE_CANVAS_WIDTH)),
        contrast_threshold=float(cfg.get("contrast_threshold") or CONTRAST_THRESHOLD),
        orphan_width_ratio=float(cfg.get("orphan_width_ratio") or ORPHAN_WIDTH_RATIO),
        font_path=Path(font_path) if font_path else None,
    )
