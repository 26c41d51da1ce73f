"""
Constants definition
Contains default geometry, matting thresholds and other configurations
"""
from typing import Tuple

# Bounding box configuration (percent of image dimensions)
MIN_BOX_PERCENT = 5.0
DEFAULT_BOX_PERCENT = 20.0
MAX_PERCENT = 100.0

# Crop configuration
DEFAULT_PADDING_RATIO = 0.15
MIN_CROP_PIXELS = 50

# Matting configuration
DEFAULT_MATTE_THRESHOLD = 30.0
DEFAULT_LIGHT_CUTOFF = 230.0

# Output encoding configuration
DEFAULT_OUTPUT_FORMAT = "png"
ALPHA_FORMATS: Tuple[str, ...] = ("png", "webp")
SUPPORTED_FORMATS: Tuple[str, ...] = ("png", "webp", "jpeg")
JPEG_QUALITY = 90
# Used for the raw crop when an alpha encoder rejects a piece
FALLBACK_FORMAT = "jpeg"

# Avoid-the-face batch crop configuration
FACE_CROP_WIDTH_RATIO = 0.8
FACE_CROP_TOP_RATIO = 0.3
IMAGE_EXTENSIONS: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".webp")
