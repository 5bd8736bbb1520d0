"""
Pixel transforms applied once a selection is confirmed (Qt-free).

Each transform reports the output size for a source image and produces the
transformed PIL image.  ``CropTransform`` consumes a crop ``Rectangle``;
``ShapeTransform`` consumes ``ShapeManipulationData`` and returns an RGBA
image masked to the shape.  Rotation and flip complete the editor toolbar.

Unlike the region engine, invalid parameters here raise ``ValueError``.
"""

from PIL import Image, ImageChops, ImageDraw

from region_editor.config import SHAPES
from region_editor.models import Rectangle, ShapeManipulationData
from region_editor.tools import normalized_to_box

# Masks are drawn at this multiple of the output size and downsampled
_MASK_SUPERSAMPLE = 4

# Rounded-square corner radius as a fraction of the side
_ROUNDED_RADIUS = 0.2

# Outlines on a 24-unit reference square
HEXAGON_POINTS = [(12, 2), (21, 7), (21, 17), (12, 22), (3, 17), (3, 7)]
_HEART_START = (12, 21.35)
_HEART_SEGMENTS = [
    ("L", (10.55, 20.03)),
    ("C", (5.4, 15.36), (2, 12.28), (2, 8.5)),
    ("C", (2, 5.42), (4.42, 3), (7.5, 3)),
    ("C", (9.24, 3), (10.91, 3.81), (12, 5.09)),
    ("C", (13.09, 3.81), (14.76, 3), (16.5, 3)),
    ("C", (19.58, 3), (22, 5.42), (22, 8.5)),
    ("C", (22, 12.28), (18.6, 15.36), (13.45, 20.04)),
    ("L", (12, 21.35)),
]
_BEZIER_STEPS = 24


# =============================================================================
# Shape masks
# =============================================================================
def _cubic(p0, p1, p2, p3, t: float) -> tuple[float, float]:
    u = 1 - t
    return (
        u ** 3 * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t ** 3 * p3[0],
        u ** 3 * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t ** 3 * p3[1],
    )


def heart_outline() -> list[tuple[float, float]]:
    """Heart outline as a polygon on the 24-unit reference square."""
    points = [_HEART_START]
    current = _HEART_START
    for segment in _HEART_SEGMENTS:
        if segment[0] == "L":
            current = segment[1]
            points.append(current)
        else:
            p1, p2, p3 = segment[1:]
            for step in range(1, _BEZIER_STEPS + 1):
                points.append(_cubic(current, p1, p2, p3, step / _BEZIER_STEPS))
            current = p3
    return points


def shape_mask(shape: str, size: int) -> Image.Image:
    """Anti-aliased ``L`` mask of *shape* filling a *size* x *size* square."""
    if shape not in SHAPES:
        raise ValueError(f"Unknown shape: {shape!r}")
    if size <= 0:
        raise ValueError(f"Mask size must be positive, got {size}")

    big = size * _MASK_SUPERSAMPLE
    mask = Image.new("L", (big, big), 0)
    draw = ImageDraw.Draw(mask)
    unit = big / 24

    if shape == "circle":
        draw.ellipse((0, 0, big - 1, big - 1), fill=255)
    elif shape == "rounded":
        draw.rounded_rectangle((0, 0, big - 1, big - 1), radius=big * _ROUNDED_RADIUS, fill=255)
    elif shape == "hexagon":
        draw.polygon([(px * unit, py * unit) for px, py in HEXAGON_POINTS], fill=255)
    elif shape == "heart":
        draw.polygon([(px * unit, py * unit) for px, py in heart_outline()], fill=255)
    else:  # square
        draw.rectangle((0, 0, big - 1, big - 1), fill=255)

    return mask.resize((size, size), Image.Resampling.LANCZOS)


def _apply_mask(img: Image.Image, mask: Image.Image) -> Image.Image:
    out = img.convert("RGBA")
    alpha = ImageChops.multiply(out.getchannel("A"), mask)
    out.putalpha(alpha)
    return out


# =============================================================================
# Transforms
# =============================================================================
def _pixel_edges(rect: Rectangle, img: Image.Image) -> tuple[int, int, int, int]:
    """Round each edge of *rect* to a whole pixel and clamp it to *img*."""
    left = min(max(round(rect.x), 0), img.width)
    top = min(max(round(rect.y), 0), img.height)
    right = min(max(round(rect.x + rect.width), 0), img.width)
    bottom = min(max(round(rect.y + rect.height), 0), img.height)
    return left, top, right, bottom


class CropTransform:
    """Crop to a rectangle, rounding its edges to whole pixels inside the image."""

    def __init__(self, crop: Rectangle):
        self.crop = crop

    def compute_size(self, img: Image.Image) -> tuple[int, int]:
        left, top, right, bottom = _pixel_edges(self.crop, img)
        return right - left, bottom - top

    def apply(self, img: Image.Image) -> Image.Image:
        left, top, right, bottom = _pixel_edges(self.crop, img)
        if right <= left or bottom <= top:
            raise ValueError(f"Crop {self.crop} has no area inside image {img.width}x{img.height}")
        return img.crop((left, top, right, bottom))


class ShapeTransform:
    """Cut out the square region described by *manipulation* and mask it to its shape."""

    def __init__(self, manipulation: ShapeManipulationData):
        if manipulation.shape not in SHAPES:
            raise ValueError(f"Unknown shape: {manipulation.shape!r}")
        self.manipulation = manipulation

    def _region(self, img: Image.Image) -> tuple[int, int, int]:
        left, top, right, bottom = _pixel_edges(
            normalized_to_box(self.manipulation, img.width, img.height), img,
        )
        # Edges are clamped independently; keep the region square
        size = max(1, min(right - left, bottom - top))
        return left, top, size

    def compute_size(self, img: Image.Image) -> tuple[int, int]:
        _, _, size = self._region(img)
        return size, size

    def apply(self, img: Image.Image) -> Image.Image:
        x, y, size = self._region(img)
        region = img.convert("RGBA").crop((x, y, x + size, y + size))
        return _apply_mask(region, shape_mask(self.manipulation.shape, size))


class RotateTransform:
    """Rotate clockwise by 90, 180 or 270 degrees."""

    _TRANSPOSE = {
        90: Image.Transpose.ROTATE_270,
        180: Image.Transpose.ROTATE_180,
        270: Image.Transpose.ROTATE_90,
    }

    def __init__(self, degrees: int):
        if degrees not in self._TRANSPOSE:
            raise ValueError(f"Rotation must be 90, 180 or 270, got {degrees}")
        self.degrees = degrees

    def compute_size(self, img: Image.Image) -> tuple[int, int]:
        if self.degrees in (90, 270):
            return img.height, img.width
        return img.width, img.height

    def apply(self, img: Image.Image) -> Image.Image:
        return img.transpose(self._TRANSPOSE[self.degrees])


class FlipTransform:
    """Mirror horizontally or vertically."""

    def __init__(self, direction: str):
        if direction not in ("horizontal", "vertical"):
            raise ValueError(f"Flip direction must be 'horizontal' or 'vertical', got {direction!r}")
        self.direction = direction

    def compute_size(self, img: Image.Image) -> tuple[int, int]:
        return img.width, img.height

    def apply(self, img: Image.Image) -> Image.Image:
        if self.direction == "horizontal":
            return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        return img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)


def execute_transform(img: Image.Image, transform) -> Image.Image:
    """Apply *transform* and check the result has the size it promised."""
    expected = transform.compute_size(img)
    result = transform.apply(img)
    if result.size != tuple(expected):
        result = result.resize(expected, Image.Resampling.LANCZOS)
    return result
