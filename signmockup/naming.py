from __future__ import annotations

import re
from pathlib import Path

from signmockup.models import TextContent

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def sanitize_token(value: str | None, fallback: str = "NA", max_length: int = 48) -> str:
    text = INVALID_FILENAME_CHARS.sub("_", (value or "").strip())
    text = re.sub(r"\s+", "_", text).strip(" ._")
    return text[:max_length] or fallback


def build_output_name(
    name_template: str,
    source: Path,
    template_id: str,
    extension: str,
    texts: TextContent | None = None,
) -> str:
    ext = extension.lower().lstrip(".")
    texts = texts or TextContent()
    values = {
        "stem": sanitize_token(source.stem, fallback="image"),
        "template": sanitize_token(template_id, fallback="template"),
        "title": sanitize_token(texts.title),
        "ext": ext,
    }
    try:
        rendered = name_template.format(**values)
    except KeyError as exc:
        missing = str(exc).strip("'")
        raise ValueError(f"name template contains unknown key: {missing}") from exc

    rendered = INVALID_FILENAME_CHARS.sub("_", rendered).strip(" .")
    if not rendered:
        rendered = f"{values['stem']}__{values['template']}.{ext}"
    if not Path(rendered).suffix:
        rendered = f"{rendered}.{ext}"
    return rendered
