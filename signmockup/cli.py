from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from signmockup.config import (
    adjustments_from_config,
    load_config,
    render_options_from_config,
    template_directory,
    write_default_config,
)
from signmockup.decoders.image_decoder import decode_image
from signmockup.discover import discover_photos
from signmockup.models import Adjustments, PaletteMode, TemplateSpec, TextContent
from signmockup.naming import build_output_name
from signmockup.render.colors import extract_dominant_colors, extract_extremes
from signmockup.render.image_modes import fit_to_reference_width
from signmockup.render.renderer import render_template
from signmockup.template_loader import TemplateError, load_builtin_catalog, load_template

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Storefront sign mockup renderer.")
LOGGER = logging.getLogger("signmockup")


@dataclass(slots=True)
class _Result:
    source: Path
    status: str          # ok | skipped | failed
    output: Path | None = None
    elapsed: float = 0.0
    error: str | None = None


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_output_format(fmt: str) -> tuple[str, str]:
    f = fmt.lower()
    if f in {"jpeg", "jpg"}:
        return "jpg", "JPEG"
    if f == "png":
        return "png", "PNG"
    raise ValueError(f"output format must be jpeg/jpg or png, got: {fmt!r}")


def _save_image(image, path: Path, pil_format: str, quality: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if pil_format == "JPEG":
        image.save(path, format="JPEG", quality=max(1, min(100, quality)), optimize=True)
    else:
        image.save(path, format="PNG", optimize=True)


def _resolve_template(template_arg: str) -> TemplateSpec:
    """Template file path, then a file in the user template folder, then a built-in id."""
    candidate = Path(template_arg)
    if candidate.is_file():
        return load_template(candidate)
    user_dir = template_directory()
    for suffix in (".yaml", ".yml", ".json"):
        user_file = user_dir / f"{template_arg}{suffix}"
        if user_file.is_file():
            return load_template(user_file)
    return load_template(template_arg)


def _override_adjustments(
    base: Adjustments,
    *,
    upper: bool | None,
    shadow: bool | None,
    stroke: bool | None,
    palette: str | None,
) -> Adjustments:
    palette_mode = base.palette
    if palette is not None:
        try:
            palette_mode = PaletteMode(palette.lower())
        except ValueError as exc:
            raise ValueError(f"palette must be auto/light/dark, got: {palette!r}") from exc
    return Adjustments(
        is_upper=base.is_upper if upper is None else upper,
        has_shadow=base.has_shadow if shadow is None else shadow,
        has_stroke=base.has_stroke if stroke is None else stroke,
        palette=palette_mode,
    )


@app.command()
def render(
    input_path: Path = typer.Argument(..., exists=True, resolve_path=True),
    template: str | None = typer.Option(None, "--template", "-t", help="Template id or .yaml/.json file path."),
    title: str = typer.Option("", "--title", help="Business name."),
    subtitle: str = typer.Option("", "--subtitle", help="Slogan or service line."),
    phone: str = typer.Option("", "--phone", help="Phone / WhatsApp."),
    upper: bool | None = typer.Option(None, "--upper/--no-upper", help="Upper-case boxes that allow it."),
    shadow: bool | None = typer.Option(None, "--shadow/--no-shadow", help="Allow text shadows."),
    stroke: bool | None = typer.Option(None, "--stroke/--no-stroke", help="Allow text outlines."),
    palette: str | None = typer.Option(None, "--palette", help="auto|light|dark"),
    out: Path | None = typer.Option(None, "--out", help="Output directory."),
    recursive: bool = typer.Option(False, "--recursive", help="Recursively scan input directories."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: jpeg|png"),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100),
    name_template: str | None = typer.Option(None, "--name", help='Output filename template, e.g. "{stem}__{template}.{ext}"'),
    skip_existing: bool | None = typer.Option(None, "--skip-existing/--no-skip-existing"),
    font: Path | None = typer.Option(None, "--font", exists=True, dir_okay=False, help="Font file to use for all text."),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Render a sign mockup onto one photo or every photo in a directory."""
    _setup_logging(log_level)
    cfg = load_config()

    fmt_str = output_format or str(cfg.get("output_format", "jpeg"))
    try:
        out_ext, pil_format = _resolve_output_format(fmt_str)
        adjustments = _override_adjustments(
            adjustments_from_config(cfg),
            upper=upper,
            shadow=shadow,
            stroke=stroke,
            palette=palette,
        )
        options = render_options_from_config(cfg)
    except ValueError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    if font is not None:
        options = replace(options, font_path=font)

    template_arg = template or str(cfg.get("template"))
    try:
        spec = _resolve_template(template_arg)
    except (FileNotFoundError, TemplateError) as exc:
        typer.secho(f"Template load failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    LOGGER.info("Template: %s (%s)", spec.id, spec.name)

    quality_val = int(quality if quality is not None else cfg.get("quality", 90))
    name_tmpl = name_template or str(cfg.get("name_template", "{stem}__{template}.{ext}"))
    skip = bool(cfg.get("skip_existing", True)) if skip_existing is None else skip_existing
    texts = TextContent(title=title, subtitle=subtitle, phone=phone)

    out_dir = out
    if out_dir is None:
        out_dir = (input_path / "output") if input_path.is_dir() else (input_path.parent / "output")

    files = discover_photos(input_path, recursive=recursive, exclude_dir=out_dir)
    if not files:
        typer.echo("No supported image files found.")
        raise typer.Exit(0)
    out_dir.mkdir(parents=True, exist_ok=True)

    def process_one(source: Path) -> _Result:
        t0 = time.perf_counter()
        try:
            output_name = build_output_name(name_tmpl, source, spec.id, extension=out_ext, texts=texts)
            output_file = out_dir / output_name
            if skip and output_file.exists():
                return _Result(source=source, status="skipped", output=output_file, elapsed=time.perf_counter() - t0)
            image = decode_image(source)
            result = render_template(image, spec, texts, adjustments, options)
            for placement in result.placements:
                LOGGER.debug(
                    "%s: %s size=%s color=%s lines=%s",
                    source.name,
                    placement.slot.value,
                    placement.font_size,
                    placement.color,
                    placement.lines,
                )
            _save_image(result.image, output_file, pil_format=pil_format, quality=quality_val)
            return _Result(source=source, status="ok", output=output_file, elapsed=time.perf_counter() - t0)
        except Exception as exc:
            return _Result(source=source, status="failed", error=str(exc), elapsed=time.perf_counter() - t0)

    results: list[_Result] = []
    for f in files:
        r = process_one(f)
        results.append(r)
        if r.status == "ok":
            LOGGER.info("OK   %s -> %s  (%.2fs)", r.source.name, r.output.name if r.output else "-", r.elapsed)
        elif r.status == "skipped":
            LOGGER.info("SKIP %s (exists)", r.source.name)
        else:
            LOGGER.error("FAIL %s  %s", r.source.name, r.error)

    ok = sum(1 for r in results if r.status == "ok")
    skipped = sum(1 for r in results if r.status == "skipped")
    failed = [r for r in results if r.status == "failed"]
    typer.echo(f"Done. success={ok} skipped={skipped} failed={len(failed)}")
    if failed:
        typer.secho("Failures:", fg=typer.colors.RED)
        for r in failed:
            typer.secho(f"  {r.source}: {r.error}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command("templates")
def list_templates() -> None:
    """List the built-in templates."""
    for spec in load_builtin_catalog():
        typer.echo(f"{spec.id}\t{spec.name}")


@app.command("inspect")
def inspect_file(
    file: Path = typer.Argument(..., exists=True, resolve_path=True, dir_okay=False),
    colors: int = typer.Option(3, "--colors", min=1, max=16, help="Number of dominant colors."),
) -> None:
    """Print the auto palette and dominant colors sampled from a photo."""
    cfg = load_config()
    options = render_options_from_config(cfg)
    try:
        image = decode_image(file)
    except Exception as exc:
        typer.secho(f"Image decode failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(1)
    canvas = fit_to_reference_width(image.convert("RGBA"), options.reference_width)
    extremes = extract_extremes(canvas)
    payload = {
        "file": str(file),
        "size": list(image.size),
        "canvas": list(canvas.size),
        "light": extremes.light_hex,
        "dark": extremes.dark_hex,
        "auto_palette": {"background": extremes.dark_hex, "foreground": extremes.light_hex},
        "dominant_colors": extract_dominant_colors(canvas, colors),
    }
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
