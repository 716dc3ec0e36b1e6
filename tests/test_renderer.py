import asyncio
import io
import logging

import pytest
from PIL import Image

from signmockup.models import (
    Adjustments,
    Align,
    Anchor,
    Orientation,
    PaletteMode,
    Rect,
    Shape,
    ShapeKind,
    TemplateSpec,
    TextBox,
    TextContent,
    TextSlot,
)
from signmockup.render.renderer import PreviewRenderer, draw_template, render_template, render_template_async
from signmockup.render.surface import PillowSurface
from signmockup.template_loader import TemplateError, load_template

ACCENT = (8, 145, 178)


def _photo(size=(1200, 800), color=(255, 255, 255)) -> Image.Image:
    return Image.new("RGB", size, color)


def test_top_banner_on_white_photo() -> None:
    spec = load_template("tarja-superior-solida")
    texts = TextContent(title="Acme Pizza")

    result = render_template(_photo(), spec, texts, Adjustments(palette=PaletteMode.DARK))

    assert result.image.size == (1200, 800)
    assert result.scale == pytest.approx(1.0)
    assert result.shape_rects["banner"] == Rect(0, 0, 1200, 96)
    assert all(channel < 60 for channel in result.image.getpixel((10, 48)))
    assert result.image.getpixel((10, 200)) == (255, 255, 255)

    title = result.placement_for(TextSlot.TITLE)
    assert title is not None
    assert title.lines == ["ACME PIZZA"]
    assert title.font_size == 56
    assert title.color == "#FFFFFF"
    assert title.origin == pytest.approx((40, 40 + title.pixel_size))
    assert result.placement_for(TextSlot.SUBTITLE) is None


def test_upper_case_needs_user_permission() -> None:
    spec = load_template("tarja-superior-solida")

    result = render_template(_photo(), spec, TextContent(title="Acme Pizza"), Adjustments(is_upper=False))

    assert result.placement_for(TextSlot.TITLE).lines == ["Acme Pizza"]


def test_phone_pill_uses_accent_and_empty_phone_draws_nothing() -> None:
    spec = load_template("centralizado-premium")

    result = render_template(_photo(color=(120, 120, 120)), spec, TextContent(title="Acme", phone=""))

    assert result.shape_rects["phone-pill"] == Rect(760, 380, 220, 40)
    assert result.image.getpixel((870, 400)) == ACCENT
    assert result.placement_for(TextSlot.PHONE) is None
    assert result.placement_for(TextSlot.TITLE) is not None


def test_free_text_on_white_photo_gets_dark_fill() -> None:
    spec = load_template("telefone-destaque")

    result = render_template(
        _photo(),
        spec,
        TextContent(title="Oficina do Joao", phone="(11) 99999-0000"),
        Adjustments(palette=PaletteMode.DARK),
    )

    assert result.palette.background == "#111827"
    assert result.placement_for(TextSlot.TITLE).color == "#111827"
    assert result.placement_for(TextSlot.PHONE) is not None


def test_small_photo_scales_template_down() -> None:
    spec = load_template("tarja-superior-solida")

    result = render_template(_photo((600, 400)), spec, TextContent(title="Acme"))

    assert result.image.size == (600, 400)
    assert result.scale == pytest.approx(0.5)
    assert result.shape_rects["banner"] == Rect(0, 0, 600, 48)
    title = result.placement_for(TextSlot.TITLE)
    assert title.pixel_size == round(title.font_size * 0.5)


def test_large_photo_is_fit_to_reference_width() -> None:
    spec = load_template("slogan-inferior")

    result = render_template(_photo((2400, 1600), (30, 60, 90)), spec, TextContent(title="Acme", subtitle="Desde 1990"))

    assert result.image.size == (1200, 800)
    assert result.scale == pytest.approx(1.0)


def test_render_is_deterministic() -> None:
    spec = load_template("caixa-de-info")
    photo = Image.linear_gradient("L").convert("RGB").resize((900, 600))
    texts = TextContent(title="Padaria Estrela", subtitle="Paes e doces", phone="(21) 3333-4444")

    first = render_template(photo, spec, texts)
    second = render_template(photo, spec, texts)

    assert first.image.tobytes() == second.image.tobytes()
    assert first.placements == second.placements


def test_side_banner_draws_vertical_title() -> None:
    spec = load_template("tarja-lateral-esquerda")

    result = render_template(_photo(color=(90, 90, 90)), spec, TextContent(title="Bar", phone="123"))

    title = result.placement_for(TextSlot.TITLE)
    assert title.orientation is Orientation.VERTICAL
    assert title.lines == ["B", "A", "R"]
    banner = result.shape_rects["banner"]
    pill = result.shape_rects["phone-pill"]
    assert pill.y == pytest.approx(banner.y + banner.height - 40)


def test_shadow_follows_user_adjustment() -> None:
    spec = load_template("telefone-destaque")
    texts = TextContent(title="Acme")

    with_shadow = render_template(_photo(color=(200, 200, 200)), spec, texts, Adjustments(has_shadow=True))
    without = render_template(_photo(color=(200, 200, 200)), spec, texts, Adjustments(has_shadow=False))

    assert with_shadow.image.tobytes() != without.image.tobytes()


def test_stroke_is_only_drawn_where_template_allows_it() -> None:
    spec = load_template("tarja-superior-solida")
    texts = TextContent(title="Acme")

    plain = render_template(_photo(), spec, texts, Adjustments(has_stroke=False))
    stroked = render_template(_photo(), spec, texts, Adjustments(has_stroke=True))

    assert plain.image.tobytes() == stroked.image.tobytes()

    outlined = TemplateSpec(
        id="outlined",
        name="Outlined",
        palette=PaletteMode.DARK,
        shapes=(Shape(id="bar", kind=ShapeKind.BAR, anchor=Anchor.TOP, width="100%", height=120),),
        text=(
            TextBox(id=TextSlot.TITLE, area="bar", align=Align.CENTER, max_lines=1, min_size=30, max_size=60, stroke=True),
        ),
    )
    plain = render_template(_photo(), outlined, texts, Adjustments(has_stroke=False))
    stroked = render_template(_photo(), outlined, texts, Adjustments(has_stroke=True))

    assert plain.image.tobytes() != stroked.image.tobytes()


def test_unknown_text_area_is_skipped() -> None:
    spec = TemplateSpec(
        id="ghost",
        name="Ghost",
        palette=PaletteMode.LIGHT,
        text=(TextBox(id=TextSlot.TITLE, area="nowhere", align=Align.CENTER, max_lines=1, min_size=10, max_size=20),),
    )

    result = render_template(_photo((300, 200)), spec, TextContent(title="Acme"))

    assert result.placements == []
    assert result.image.getpixel((150, 100)) == (255, 255, 255)


def test_broken_shape_is_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    spec = TemplateSpec(
        id="broken",
        name="Broken",
        palette=PaletteMode.LIGHT,
        shapes=(
            Shape(id="bad", kind=ShapeKind.BAR, anchor=Anchor.TOP, width="abc%", height=40),
            Shape(id="good", kind=ShapeKind.BAR, anchor=Anchor.BOTTOM, width="100%", height=40),
        ),
    )

    with caplog.at_level(logging.WARNING):
        result = render_template(_photo((300, 200)), spec, TextContent())

    assert list(result.shape_rects) == ["good"]
    assert "bad" in caplog.text


def test_draw_template_matches_render_template_on_same_canvas() -> None:
    spec = load_template("caixa-de-info")
    photo = _photo((1200, 800), (60, 90, 120))
    texts = TextContent(title="Padaria", phone="(21) 3333-4444")

    rendered = render_template(photo, spec, texts)
    drawn = draw_template(PillowSurface(1200, 800), photo.convert("RGBA"), spec, texts, Adjustments())

    assert drawn is not None
    assert drawn.image.tobytes() == rendered.image.tobytes()
    assert drawn.placements == rendered.placements


def test_missing_surface_is_a_no_op() -> None:
    spec = load_template("tarja-superior-solida")

    assert draw_template(None, _photo(), spec, TextContent(title="x"), Adjustments()) is None


def test_missing_image_raises() -> None:
    with pytest.raises(ValueError):
        render_template(None, load_template("tarja-superior-solida"), TextContent())


def test_invalid_spec_is_rejected_before_drawing() -> None:
    shape = Shape(id="a", kind=ShapeKind.BAR, anchor=Anchor.TOP, width=10, height=10)
    spec = TemplateSpec(id="dup", name="Dup", palette=PaletteMode.AUTO, shapes=(shape, shape))

    with pytest.raises(TemplateError):
        render_template(_photo((100, 100)), spec, TextContent())


def test_async_render_accepts_encoded_bytes() -> None:
    buffer = io.BytesIO()
    _photo((400, 300), (10, 120, 40)).save(buffer, format="PNG")
    spec = load_template("adesivo-vitrine")

    result = asyncio.run(render_template_async(buffer.getvalue(), spec, TextContent(title="Acme")))

    assert result.image.size == (400, 300)
    assert result.placement_for(TextSlot.TITLE) is not None


def test_preview_renderer_keeps_only_latest_request() -> None:
    spec = load_template("tarja-superior-solida")
    photo = _photo((300, 200))
    previewer = PreviewRenderer()

    async def run():
        return await asyncio.gather(
            previewer.submit(photo, spec, TextContent(title="one")),
            previewer.submit(photo, spec, TextContent(title="two")),
            previewer.submit(photo, spec, TextContent(title="three")),
        )

    first, second, third = asyncio.run(run())

    assert first is None
    assert second is None
    assert third.placement_for(TextSlot.TITLE).lines == ["THREE"]
    assert previewer.generation == 3
