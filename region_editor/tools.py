"""
Crop and shape tools built on the shared drag session.

``CropTool`` is a free-ratio region that starts as a box inset by
``CROP_MARGIN`` on every side and hands its final ``Rectangle`` (image pixels)
to the apply callback.  ``ShapeTool`` is a square region whose public state is
a ``ShapeManipulationData`` (normalized center and scale); the rectangle form
is only used while the session manipulates it.

Both tools close after apply or cancel; input to a closed tool is ignored.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import replace

from region_editor.config import (
    CROP_MARGIN, DEFAULT_SHAPE, DEFAULT_SHAPE_SCALE, MIN_CROP_SIZE,
    SHAPE_MAX_SCALE, SHAPE_MIN_SCALE, SHAPE_MIN_SIZE_FRACTION,
)
from region_editor.constraints import clamp
from region_editor.drag_session import DragSession
from region_editor.mapping import CoordinateMapper, safe_extent
from region_editor.models import BoundingBoxConfig, ImageBounds, Rectangle, ShapeManipulationData

logger = logging.getLogger(__name__)


# =============================================================================
# Geometry helpers
# =============================================================================
def initial_crop_box(bounds: ImageBounds, margin: float = CROP_MARGIN) -> Rectangle:
    """Box inset by *margin* of each dimension, per axis (not necessarily square)."""
    return Rectangle(
        x=bounds.width * margin,
        y=bounds.height * margin,
        width=bounds.width * (1 - 2 * margin),
        height=bounds.height * (1 - 2 * margin),
    )


def normalized_to_box(data: ShapeManipulationData, image_w: float, image_h: float) -> Rectangle:
    """Square rectangle (image pixels) described by normalized shape data."""
    image_w = safe_extent(image_w)
    image_h = safe_extent(image_h)
    size = data.scale * min(image_w, image_h)
    return Rectangle(
        x=data.center_x * image_w - size / 2,
        y=data.center_y * image_h - size / 2,
        width=size,
        height=size,
    )


def box_to_normalized(
    box: Rectangle,
    image_w: float,
    image_h: float,
    shape: str = DEFAULT_SHAPE,
) -> ShapeManipulationData:
    """Inverse of ``normalized_to_box``; scale is clamped to the shape scale range."""
    image_w = safe_extent(image_w)
    image_h = safe_extent(image_h)
    return ShapeManipulationData(
        shape=shape,
        center_x=(box.x + box.width / 2) / image_w,
        center_y=(box.y + box.height / 2) / image_h,
        scale=clamp(box.width / min(image_w, image_h), SHAPE_MIN_SCALE, SHAPE_MAX_SCALE),
    )


def shape_config(bounds: ImageBounds) -> BoundingBoxConfig:
    return BoundingBoxConfig(
        min_size=SHAPE_MIN_SIZE_FRACTION * min(bounds.width, bounds.height),
        aspect_ratio=1,
    )


# =============================================================================
# Tools
# =============================================================================
class RegionTool(ABC):
    """Common apply/cancel lifecycle around a ``DragSession``."""

    name = "region"

    def __init__(
        self,
        mapper: CoordinateMapper,
        config: BoundingBoxConfig,
        on_apply: Callable | None = None,
        on_cancel: Callable[[], None] | None = None,
        on_capture: Callable[[], None] | None = None,
        on_release: Callable[[], None] | None = None,
    ):
        self._on_apply = on_apply
        self._on_cancel = on_cancel
        self._closed = False
        self.session = DragSession(
            config, mapper, self.initial_box,
            on_capture=on_capture, on_release=on_release,
        )

    @abstractmethod
    def initial_box(self, bounds: ImageBounds) -> Rectangle:
        """Starting rectangle for an image of *bounds*, before constraints."""

    @abstractmethod
    def apply_data(self):
        """Value handed to ``on_apply``."""

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def box(self) -> Rectangle:
        return self.session.box

    # --- Pointer input ---

    def start_drag(self, pointer: tuple[float, float], drag_type: str) -> bool:
        if self._closed:
            return False
        return self.session.start_drag(pointer, drag_type)

    def on_pointer_move(self, pointer: tuple[float, float]) -> Rectangle | None:
        if self._closed:
            return None
        return self.session.on_pointer_move(pointer)

    def on_pointer_up(self) -> Rectangle | None:
        if self._closed:
            return None
        return self.session.on_pointer_up()

    def nudge(self, dx: float, dy: float) -> bool:
        if self._closed:
            return False
        return self.session.nudge(dx, dy)

    def reset(self) -> bool:
        if self._closed:
            return False
        return self.session.reset()

    # --- Lifecycle ---

    def apply(self):
        """Commit any drag, hand the result to ``on_apply`` and close."""
        if self._closed:
            return None
        self.session.on_pointer_up()
        data = self.apply_data()
        self._closed = True
        logger.info("%s tool applied: %s", self.name, data)
        if self._on_apply:
            self._on_apply(data)
        return data

    def cancel(self) -> None:
        """Discard any drag, notify ``on_cancel`` and close."""
        if self._closed:
            return
        self.session.cancel()
        self._closed = True
        logger.info("%s tool cancelled", self.name)
        if self._on_cancel:
            self._on_cancel()


class CropTool(RegionTool):
    """Free-ratio crop region."""

    name = "crop"

    def __init__(self, mapper: CoordinateMapper, min_size: float = MIN_CROP_SIZE, **kwargs):
        super().__init__(mapper, BoundingBoxConfig(min_size=min_size, aspect_ratio=None), **kwargs)

    def initial_box(self, bounds: ImageBounds) -> Rectangle:
        return initial_crop_box(bounds)

    def apply_data(self) -> Rectangle:
        return self.session.box


class ShapeTool(RegionTool):
    """Square placement region for a mask shape, exposed in normalized form."""

    name = "shape"

    def __init__(
        self,
        mapper: CoordinateMapper,
        shape: str = DEFAULT_SHAPE,
        saved: ShapeManipulationData | None = None,
        **kwargs,
    ):
        self.shape = shape
        if saved is not None and saved.shape == shape:
            self._initial_data = replace(
                saved, scale=clamp(saved.scale, SHAPE_MIN_SCALE, SHAPE_MAX_SCALE),
            )
        else:
            self._initial_data = ShapeManipulationData(shape=shape, scale=DEFAULT_SHAPE_SCALE)
        super().__init__(mapper, shape_config(mapper.image_bounds()), **kwargs)
        self._manipulation = self._to_normalized(self.session.box)
        self.session.subscribe(self._on_box_changed)

    def initial_box(self, bounds: ImageBounds) -> Rectangle:
        return normalized_to_box(self._initial_data, bounds.width, bounds.height)

    @property
    def manipulation(self) -> ShapeManipulationData:
        return self._manipulation

    def apply_data(self) -> ShapeManipulationData:
        return self._manipulation

    def _to_normalized(self, box: Rectangle) -> ShapeManipulationData:
        bounds = self.session.mapper.image_bounds()
        return box_to_normalized(box, bounds.width, bounds.height, self.shape)

    def _on_box_changed(self, box: Rectangle):
        self._manipulation = self._to_normalized(box)
