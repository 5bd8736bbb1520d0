"""
Application constants and configuration.

All constants controlling region-editor behaviour live here: minimum region
sizes, the crop margin, shape scale bounds, handle geometry and keyboard
nudge amounts.

The ``config_dir()`` helper returns the platform-appropriate config
directory and is used by the selection cache.
"""

import os
import sys
from pathlib import Path

# =============================================================================
# APP IDENTITY & CONFIG DIRECTORY
# =============================================================================
APP_NAME = "region-editor"


def config_dir() -> Path:
    """Return the platform-appropriate config directory, creating it if needed."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    directory = base / APP_NAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


# =============================================================================
# REGION CONSTRAINTS
# =============================================================================

# Minimum crop size (image pixels)
MIN_CROP_SIZE = 16

# Initial crop box inset, as a fraction of each image dimension
CROP_MARGIN = 0.1

# Shape minimum side, as a fraction of min(image_w, image_h)
SHAPE_MIN_SIZE_FRACTION = 0.1

# Shape scale bounds (fraction of min(image_w, image_h))
SHAPE_MIN_SCALE = 0.1
SHAPE_MAX_SCALE = 1.0

# Earlier revisions started shapes at half size; the current default fills the
# shorter image side.
DEFAULT_SHAPE_SCALE = 1.0

# Substitute extent when the layout reports a non-positive image dimension
PLACEHOLDER_EXTENT = 200

# Mask shapes offered by the shape tool
SHAPES = ["circle", "square", "rounded", "hexagon", "heart"]
DEFAULT_SHAPE = "circle"

# =============================================================================
# INTERACTION
# =============================================================================

# Handle radius and extra hit tolerance (pixels in screen coordinates)
HANDLE_SIZE = 6
HANDLE_TOLERANCE = 12

# Nudge amounts (pixels in image coordinates)
NUDGE_SMALL = 1
NUDGE_LARGE = 10

# Undo history depth in the editor window
MAX_HISTORY = 20

# =============================================================================
# EXPORT
# =============================================================================

# Supported image extensions
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp", ".psd"}

# PNG compression level (0-9, 9 = maximum compression)
PNG_COMPRESS_LEVEL = 9
