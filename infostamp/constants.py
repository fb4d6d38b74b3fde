STANDARD_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff", ".bmp", ".gif", ".webp"}
HEIF_EXTENSIONS = {".heic", ".heif", ".hif"}
SUPPORTED_EXTENSIONS = STANDARD_EXTENSIONS | HEIF_EXTENSIONS

# Raster annotation (text strip appended below the image)
RASTER_PADDING = 20
RASTER_START_SIZE = 12.0
RASTER_SIZE_STEP = 1.0
RASTER_MIN_SIZE = 1.0
RASTER_MAX_SIZE = 256.0
RASTER_FONT_FAMILY = "Arial"

# Fixed region on a page (signature block)
PAGE_TEXT_PADDING = 10.0
PAGE_IMAGE_PADDING = 5.0
PAGE_START_SIZE = 12.0
PAGE_SIZE_STEP = 0.5
PAGE_MIN_SIZE = 5.0
PAGE_MAX_SIZE = 20.0
PAGE_FILL_RATIO = 0.8
PAGE_FONT_FAMILY = "Helvetica"

# Image/text split of a region, as the image share of the total height
CAPTION_IMAGE_RATIO = 0.3
SIGNATURE_IMAGE_RATIO = 0.6

DEBUG_BORDER_WIDTH = 1.0
DEBUG_REGION_COLOR = "#FF0000"
DEBUG_IMAGE_AREA_COLOR = "#000000"
DEBUG_IMAGE_INSET_COLOR = "#FFFF00"

VALID_OUTPUT_FORMATS = {"png", "jpeg", "jpg"}
VALID_STRATEGIES = {"grow", "shrink"}
