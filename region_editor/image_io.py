"""
Qt-free image I/O utilities.

Provides helpers to open images (including PSD), compute content
fingerprints, save results and generate unique file paths.
"""

import hashlib
from pathlib import Path

from PIL import Image
from psd_tools import PSDImage

from region_editor.config import PNG_COMPRESS_LEVEL

# Allow very large images (Pillow's default limit is ~178MP)
Image.MAX_IMAGE_PIXELS = None

# Number of bytes read for fingerprinting (64 KB)
_FINGERPRINT_READ_SIZE = 65_536


def compute_fingerprint(path: Path) -> str:
    """
    Compute a fast content fingerprint for an image file.

    Reads the first 64 KB of the file and combines it with the file size
    to produce a truncated SHA-256 hex string.  Format: ``"{size_hex}_{hash16}"``.
    Renamed or moved files keep their fingerprint.
    """
    size = path.stat().st_size
    sha = hashlib.sha256()
    with open(path, "rb") as f:
        sha.update(f.read(_FINGERPRINT_READ_SIZE))
    return f"{size:x}_{sha.hexdigest()[:16]}"


def open_image(path: Path) -> Image.Image:
    """Open an image file, using psd-tools for PSD and Pillow for the rest."""
    if path.suffix.lower() == ".psd":
        psd = PSDImage.open(str(path))
        return psd.composite()
    img = Image.open(path)
    img.load()
    return img


def save_image(img: Image.Image, out_path: Path) -> Path:
    """Save *img* under a unique name; PNG unless the suffix says JPEG."""
    out_path = unique_path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() in (".jpg", ".jpeg"):
        # JPEG has no alpha; masked shapes are flattened onto white
        if img.mode in ("RGBA", "LA", "P"):
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img.convert("RGBA"), mask=img.convert("RGBA").getchannel("A"))
            img = background
        img.convert("RGB").save(str(out_path), "JPEG", quality=95)
    else:
        img.save(str(out_path), "PNG", compress_level=PNG_COMPRESS_LEVEL)
    return out_path


def unique_path(out_path: Path) -> Path:
    """Return a unique path by appending -01, -02, etc. if file already exists."""
    if not out_path.exists():
        return out_path
    stem = out_path.stem
    suffix = out_path.suffix
    parent = out_path.parent
    counter = 1
    while True:
        candidate = parent / f"{stem}-{counter:02d}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
