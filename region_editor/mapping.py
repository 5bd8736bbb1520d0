"""
Coordinate mapping between image pixels and display pixels.

A ``Layout`` describes where the image currently sits on screen: its pixel
size, the display scale (display pixels per image pixel) and the offset of
the image's top-left corner inside its container.  The layout can change
between frames (container resize), so ``CoordinateMapper`` asks its layout
source for a fresh ``Layout`` on every conversion instead of caching one.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass

from region_editor.config import PLACEHOLDER_EXTENT
from region_editor.models import DisplayRectangle, ImageBounds, Rectangle


@dataclass(frozen=True)
class Layout:
    """Image placement inside its display container."""
    image_width: float
    image_height: float
    display_scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


def safe_scale(scale: float) -> float:
    """Treat a zero or non-finite scale as 1 so deltas stay finite."""
    if not isinstance(scale, (int, float)) or scale == 0 or not math.isfinite(scale):
        return 1.0
    return float(scale)


def safe_extent(value: float) -> float:
    """Substitute ``PLACEHOLDER_EXTENT`` for a non-positive image dimension."""
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return float(PLACEHOLDER_EXTENT)
    return float(value)


def image_bounds_of(layout: Layout) -> ImageBounds:
    return ImageBounds(safe_extent(layout.image_width), safe_extent(layout.image_height))


def fit_layout(view_w: float, view_h: float, img_w: float, img_h: float) -> Layout:
    """Scale an image to fit a view with letterboxing, centered."""
    img_w = safe_extent(img_w)
    img_h = safe_extent(img_h)
    if view_w <= 0 or view_h <= 0:
        return Layout(img_w, img_h)
    scale = min(view_w / img_w, view_h / img_h)
    disp_w = img_w * scale
    disp_h = img_h * scale
    return Layout(img_w, img_h, scale, (view_w - disp_w) / 2, (view_h - disp_h) / 2)


class CoordinateMapper:
    """Converts rectangles and pointer deltas between image and display space."""

    def __init__(self, layout_source: Callable[[], Layout]):
        self._layout_source = layout_source

    @classmethod
    def fixed(cls, layout: Layout) -> "CoordinateMapper":
        """Mapper over a layout that never changes (tests, headless use)."""
        return cls(lambda: layout)

    def layout(self) -> Layout:
        return self._layout_source()

    def image_bounds(self) -> ImageBounds:
        return image_bounds_of(self.layout())

    def to_display(self, rect: Rectangle) -> DisplayRectangle:
        layout = self.layout()
        scale = safe_scale(layout.display_scale)
        return DisplayRectangle(
            left=layout.offset_x + rect.x * scale,
            top=layout.offset_y + rect.y * scale,
            width=rect.width * scale,
            height=rect.height * scale,
        )

    def pointer_delta_to_image_delta(self, dx_display: float, dy_display: float) -> tuple[float, float]:
        scale = safe_scale(self.layout().display_scale)
        return dx_display / scale, dy_display / scale
