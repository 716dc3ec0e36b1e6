STANDARD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}
HEIF_EXTENSIONS = {".heic", ".heif", ".hif"}
SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS | HEIF_EXTENSIONS

# Template sizes, paddings and offsets are authored against this canvas width.
REFERENCE_CANVAS_WIDTH = 1200

BRAND_ACCENT = "#0891b2"
LIGHT_PALETTE = {"background": "#FFFFFF", "foreground": "#111827", "accent": BRAND_ACCENT}
DARK_PALETTE = {"background": "#111827", "foreground": "#FFFFFF", "accent": BRAND_ACCENT}

# WCAG AA body text.
CONTRAST_THRESHOLD = 4.5
# A two-line wrap is re-split when the first line is wider than this many last words.
ORPHAN_WIDTH_RATIO = 3.0

LINE_HEIGHT_FACTOR = 1.2
VERTICAL_GLYPH_FACTOR = 1.1

SHADOW_COLOR = (0, 0, 0, 128)
SHADOW_BLUR = 8
SHADOW_OFFSET = 3
STROKE_DARK = (0, 0, 0, 178)
STROKE_LIGHT = (255, 255, 255, 178)

FREE_AREA = "free"
PHONE_SHAPE_ID = "phone-pill"

EXTREMES_SAMPLE_TARGET = 1000
DOMINANT_SAMPLE_TARGET = 2000

DEFAULT_TEMPLATE_ID = "centralizado-premium"
