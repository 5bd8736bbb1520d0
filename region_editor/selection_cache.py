"""
Persistent selection cache: remember the applied shape placement per image.

Images are identified by a content fingerprint (see
``image_io.compute_fingerprint``).  Image dimensions are validated on lookup
to guard against file replacement.  A shape tool opened on an image with a
cached placement for the same shape starts from that placement.

The on-disk format uses a versioned envelope::

    {
        "version": 1,
        "images": {
            "<fingerprint>": {
                "img_w": 1024,
                "img_h": 768,
                "last_used": "2026-02-10T14:30:00+00:00",
                "shape": {"shape": "circle", "center_x": 0.5,
                          "center_y": 0.5, "scale": 0.8}
            }
        }
    }

This module is Qt-free.
"""

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path

from region_editor.config import SHAPES, config_dir
from region_editor.models import ShapeManipulationData

logger = logging.getLogger(__name__)

_CACHE_FILENAME = "selection_cache.json"
_CACHE_VERSION = 1


# =============================================================================
# Serialization helpers
# =============================================================================
def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _shape_to_dict(data: ShapeManipulationData) -> dict:
    return {
        "shape": data.shape,
        "center_x": data.center_x,
        "center_y": data.center_y,
        "scale": data.scale,
    }


def _dict_to_shape(data) -> ShapeManipulationData | None:
    if not isinstance(data, dict) or data.get("shape") not in SHAPES:
        return None
    values = [data.get("center_x"), data.get("center_y"), data.get("scale")]
    if not all(_is_number(v) for v in values):
        return None
    return ShapeManipulationData(data["shape"], *(float(v) for v in values))


# =============================================================================
# Load / Save
# =============================================================================
def _cache_path() -> Path:
    return config_dir() / _CACHE_FILENAME


def load_selection_cache(path: Path | None = None) -> dict:
    """
    Load the selection cache from disk.

    Returns the ``images`` dict from the versioned envelope, or an empty
    dict if the file is missing, corrupt, or has an unexpected version.
    """
    path = path or _cache_path()

    if not path.exists():
        logger.debug("No selection cache found at %s, starting fresh", path)
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read selection cache (%s), starting fresh", exc)
        return {}

    if not isinstance(raw, dict) or raw.get("version") != _CACHE_VERSION:
        logger.warning("Selection cache version mismatch or invalid format, starting fresh")
        return {}

    images = raw.get("images")
    if not isinstance(images, dict):
        logger.warning("Selection cache missing 'images' dict, starting fresh")
        return {}

    logger.info("Loaded selection cache with %d entries from %s", len(images), path)
    return images


def save_selection_cache(cache: dict, path: Path | None = None) -> None:
    """Write the ``images`` dict to disk in a versioned envelope."""
    path = path or _cache_path()
    envelope = {"version": _CACHE_VERSION, "images": cache}
    try:
        path.write_text(json.dumps(envelope, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("Saved selection cache (%d entries) to %s", len(cache), path)
    except OSError as exc:
        logger.error("Could not write selection cache to %s: %s", path, exc)


# =============================================================================
# Lookup / Store
# =============================================================================
def _entry(cache: dict, fingerprint: str, img_w: int, img_h: int) -> dict | None:
    entry = cache.get(fingerprint)
    if not isinstance(entry, dict):
        return None
    if entry.get("img_w") != img_w or entry.get("img_h") != img_h:
        logger.debug(
            "Selection cache dimension mismatch for %s: cached %sx%s, actual %sx%s, ignoring",
            fingerprint, entry.get("img_w"), entry.get("img_h"), img_w, img_h,
        )
        return None
    return entry


def lookup_shape(cache: dict, fingerprint: str, img_w: int, img_h: int) -> ShapeManipulationData | None:
    entry = _entry(cache, fingerprint, img_w, img_h)
    return _dict_to_shape(entry.get("shape")) if entry else None


def _upsert(cache: dict, fingerprint: str, img_w: int, img_h: int) -> dict:
    entry = _entry(cache, fingerprint, img_w, img_h)
    if entry is None:
        entry = {"img_w": img_w, "img_h": img_h}
        cache[fingerprint] = entry
    entry["last_used"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return entry


def store_shape(cache: dict, fingerprint: str, img_w: int, img_h: int, data: ShapeManipulationData) -> None:
    """Upsert the applied shape placement for an image into the in-memory cache."""
    _upsert(cache, fingerprint, img_w, img_h)["shape"] = _shape_to_dict(data)
