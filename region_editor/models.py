"""
Data models shared by the region engine, the tools and the UI.

``Rectangle`` is the region in image-pixel units; ``DisplayRectangle`` is the
same region mapped to on-screen pixels and is always derived, never stored.
``BoundingBoxConfig`` fixes a tool's minimum size and optional aspect ratio,
and ``ShapeManipulationData`` is the image-size-independent form of a shape
placement (fractional center plus fractional scale).

Handle positions are the strings ``n, s, e, w, ne, nw, se, sw``.  Edge handles
carry one direction letter, corner handles two, so ``"nw"`` means both the
``n`` and ``w`` rules apply.  A drag type is ``"move"``, a handle, or ``None``.
"""

from dataclasses import dataclass


# =============================================================================
# Handles and drag types
# =============================================================================
HANDLE_POSITIONS = ("nw", "n", "ne", "e", "se", "s", "sw", "w")
DRAG_MOVE = "move"


def is_handle(drag_type) -> bool:
    return drag_type in HANDLE_POSITIONS


def is_valid_drag_type(drag_type) -> bool:
    """True for ``"move"`` or one of the eight handle positions."""
    return drag_type == DRAG_MOVE or is_handle(drag_type)


# =============================================================================
# Data classes
# =============================================================================
@dataclass(frozen=True)
class Rectangle:
    """Region rectangle in image coordinates (floats)."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class DisplayRectangle:
    """Region rectangle in display (widget) coordinates."""
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class ImageBounds:
    """Pixel dimensions of the image a region must stay inside."""
    width: float
    height: float


@dataclass(frozen=True)
class BoundingBoxConfig:
    """Per-tool constraints: minimum side and optional locked width/height ratio."""
    min_size: float
    aspect_ratio: float | None = None  # None = free resize

    @property
    def is_locked(self) -> bool:
        return self.aspect_ratio is not None


@dataclass(frozen=True)
class ShapeManipulationData:
    """Normalized shape placement.

    ``center_x``/``center_y`` are fractions of the image width/height and
    ``scale`` is the side of the square as a fraction of the shorter image side.
    """
    shape: str = "circle"
    center_x: float = 0.5
    center_y: float = 0.5
    scale: float = 1.0
