"""
Region constraint solver.

Pure functions that turn a start rectangle plus a drag delta (both in image
pixels) into a rectangle satisfying the tool's constraints:

* the rectangle lies inside the image (``x >= 0``, ``y >= 0``,
  ``right <= image width``, ``bottom <= image height``);
* both sides are at least ``min_size``;
* with a locked aspect ratio, ``width / height == aspect_ratio``.

Nothing here raises.  When the image is smaller than ``min_size`` the result
is clamped to the largest achievable size instead.
"""

from dataclasses import replace

from region_editor.models import BoundingBoxConfig, ImageBounds, Rectangle, DRAG_MOVE


def clamp(value: float, lo: float, hi: float) -> float:
    """Return *value* limited to ``[lo, hi]``; *hi* wins when ``lo > hi``."""
    return min(max(value, lo), hi)


# =============================================================================
# Bounding
# =============================================================================
def _with_aspect_ratio(box: Rectangle, aspect_ratio: float | None) -> Rectangle:
    """Normalize an arbitrary box to the locked ratio using its shorter side."""
    if aspect_ratio is None:
        return box
    size = min(box.width, box.height)
    return replace(box, width=size, height=size / aspect_ratio)


def constrain_box(box: Rectangle, config: BoundingBoxConfig, bounds: ImageBounds) -> Rectangle:
    """Clamp size, ratio and position of *box* to *config* inside *bounds*."""
    min_size = config.min_size
    ratio = config.aspect_ratio
    box = _with_aspect_ratio(box, ratio)

    width = clamp(box.width, min_size, bounds.width)
    height = clamp(box.height, min_size, bounds.height)

    if ratio is not None:
        # The largest ratio-respecting box may be limited by either image side
        max_size = min(bounds.width, bounds.height * ratio)
        width = clamp(width, min_size, max_size)
        height = width / ratio

    x = clamp(box.x, 0, bounds.width - width)
    y = clamp(box.y, 0, bounds.height - height)
    return Rectangle(x, y, width, height)


def move_box(
    start_box: Rectangle,
    dx: float,
    dy: float,
    config: BoundingBoxConfig,
    bounds: ImageBounds,
) -> Rectangle:
    """Translate *start_box*; only the position is ever clamped."""
    moved = replace(start_box, x=start_box.x + dx, y=start_box.y + dy)
    return constrain_box(moved, config, bounds)


def resize_box(
    handle: str,
    start_box: Rectangle,
    dx: float,
    dy: float,
    config: BoundingBoxConfig,
    bounds: ImageBounds,
) -> Rectangle:
    """Resize *start_box* by dragging *handle* by ``(dx, dy)`` image pixels."""
    if config.aspect_ratio is not None:
        new_box = _resize_with_aspect_ratio(handle, start_box, dx, dy, config.aspect_ratio, config.min_size)
    else:
        new_box = _resize_free(handle, start_box, dx, dy, config.min_size, bounds)
    return constrain_box(new_box, config, bounds)


def apply_drag(
    drag_type: str,
    start_box: Rectangle,
    dx: float,
    dy: float,
    config: BoundingBoxConfig,
    bounds: ImageBounds,
) -> Rectangle:
    """Dispatch to ``move_box`` or ``resize_box`` by drag type."""
    if drag_type == DRAG_MOVE:
        return move_box(start_box, dx, dy, config, bounds)
    return resize_box(drag_type, start_box, dx, dy, config, bounds)


# =============================================================================
# Free resize (crop)
# =============================================================================
def _resize_free(
    handle: str,
    start: Rectangle,
    dx: float,
    dy: float,
    min_size: float,
    bounds: ImageBounds,
) -> Rectangle:
    """Move each dragged edge independently; the opposite edge stays put."""
    x, y, width, height = start.as_tuple()

    if "n" in handle:
        bottom = y + height
        top = max(0, y + dy)
        height = max(min_size, bottom - top)
        y = bottom - height
    elif "s" in handle:
        height = clamp(height + dy, min_size, bounds.height - y)

    if "w" in handle:
        right = x + width
        left = max(0, x + dx)
        width = max(min_size, right - left)
        x = right - width
    elif "e" in handle:
        width = clamp(width + dx, min_size, bounds.width - x)

    return Rectangle(x, y, width, height)


# =============================================================================
# Aspect-locked resize (shape)
# =============================================================================
def _resize_with_aspect_ratio(
    handle: str,
    start: Rectangle,
    dx: float,
    dy: float,
    ratio: float,
    min_size: float,
) -> Rectangle:
    if len(handle) == 2:
        return _resize_corner(handle, start, dx, dy, ratio, min_size)
    if handle in ("n", "s"):
        return _resize_vertical_edge(handle, start, dy, ratio, min_size)
    if handle in ("w", "e"):
        return _resize_horizontal_edge(handle, start, dx, ratio, min_size)
    return start


def _resize_corner(
    handle: str,
    box: Rectangle,
    dx: float,
    dy: float,
    ratio: float,
    min_size: float,
) -> Rectangle:
    """The axis with the larger outward movement drives the new size."""
    is_left = "w" in handle
    is_top = "n" in handle

    h_delta = -dx if is_left else dx
    v_delta = -dy if is_top else dy
    delta = h_delta if abs(h_delta) > abs(v_delta) else v_delta

    new_size = max(min_size, box.width + delta)
    new_height = new_size / ratio
    return Rectangle(
        x=box.x + box.width - new_size if is_left else box.x,
        y=box.y + box.height - new_height if is_top else box.y,
        width=new_size,
        height=new_height,
    )


def _resize_vertical_edge(
    handle: str,
    box: Rectangle,
    dy: float,
    ratio: float,
    min_size: float,
) -> Rectangle:
    """Height follows the edge; width follows the ratio, centered horizontally."""
    if handle == "n":
        new_height = max(min_size, box.height - dy)
    else:
        new_height = max(min_size, box.height + dy)
    new_width = new_height * ratio
    return Rectangle(
        x=box.x + (box.width - new_width) / 2,
        y=box.y + box.height - new_height if handle == "n" else box.y,
        width=new_width,
        height=new_height,
    )


def _resize_horizontal_edge(
    handle: str,
    box: Rectangle,
    dx: float,
    ratio: float,
    min_size: float,
) -> Rectangle:
    """Width follows the edge; height follows the ratio, centered vertically."""
    if handle == "w":
        new_width = max(min_size, box.width - dx)
    else:
        new_width = max(min_size, box.width + dx)
    new_height = new_width / ratio
    return Rectangle(
        x=box.x + box.width - new_width if handle == "w" else box.x,
        y=box.y + (box.height - new_height) / 2,
        width=new_width,
        height=new_height,
    )
