"""
Drag session: turns a pointer gesture into a sequence of valid rectangles.

The session is either ``Idle`` or ``Dragging``.  A drag snapshots the current
rectangle and pointer position; every pointer move recomputes the result from
that snapshot plus the total delta, so jitter and backtracking never
accumulate error.  ``on_pointer_up`` commits the last rectangle, ``cancel``
restores the snapshot.

Misuse by the caller (starting a drag while dragging, moving while idle,
resetting mid-drag) is ignored and logged at DEBUG level.

Pointer capture is tied to the ``Dragging`` state: the optional
``on_capture``/``on_release`` callables run on entry and exit, so a UI only
listens for global pointer events while a drag is live.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from region_editor.constraints import apply_drag, constrain_box
from region_editor.mapping import CoordinateMapper
from region_editor.models import (
    DRAG_MOVE, BoundingBoxConfig, DisplayRectangle, ImageBounds, Rectangle, is_valid_drag_type,
)

logger = logging.getLogger(__name__)

BoxListener = Callable[[Rectangle], None]


# =============================================================================
# States
# =============================================================================
@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    drag_type: str
    start_box: Rectangle
    start_pointer: tuple[float, float]


IDLE = Idle()


# =============================================================================
# Session
# =============================================================================
class DragSession:
    """Owns one tool's rectangle and its Idle/Dragging lifecycle."""

    def __init__(
        self,
        config: BoundingBoxConfig,
        mapper: CoordinateMapper,
        initial_box: Callable[[ImageBounds], Rectangle],
        on_capture: Callable[[], None] | None = None,
        on_release: Callable[[], None] | None = None,
    ):
        self._config = config
        self._mapper = mapper
        self._initial_box = initial_box
        self._on_capture = on_capture
        self._on_release = on_release
        self._listeners: list[BoxListener] = []
        self._state: Idle | Dragging = IDLE
        self._box = self._make_initial_box()

    # --- Read access ---

    @property
    def config(self) -> BoundingBoxConfig:
        return self._config

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    @property
    def state(self) -> Idle | Dragging:
        return self._state

    @property
    def box(self) -> Rectangle:
        return self._box

    @property
    def display_box(self) -> DisplayRectangle:
        return self._mapper.to_display(self._box)

    @property
    def is_dragging(self) -> bool:
        return isinstance(self._state, Dragging)

    @property
    def drag_type(self) -> str | None:
        return self._state.drag_type if isinstance(self._state, Dragging) else None

    # --- Subscribers ---

    def subscribe(self, listener: BoxListener) -> Callable[[], None]:
        """Register *listener* for rectangle updates; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self):
        for listener in list(self._listeners):
            listener(self._box)

    # --- Transitions ---

    def start_drag(self, pointer: tuple[float, float], drag_type: str) -> bool:
        """Enter Dragging with *drag_type* at display-space *pointer*."""
        if self.is_dragging:
            logger.debug("start_drag(%s) ignored: already dragging %s", drag_type, self.drag_type)
            return False
        if not is_valid_drag_type(drag_type):
            logger.debug("start_drag ignored: unknown drag type %r", drag_type)
            return False
        self._state = Dragging(drag_type, self._box, (float(pointer[0]), float(pointer[1])))
        logger.debug("Drag started: %s from %s", drag_type, self._box)
        if self._on_capture:
            self._on_capture()
        return True

    def on_pointer_move(self, pointer: tuple[float, float]) -> Rectangle | None:
        """Recompute the rectangle from the drag snapshot; ``None`` while idle."""
        state = self._state
        if not isinstance(state, Dragging):
            logger.debug("on_pointer_move ignored: no drag in progress")
            return None
        dx, dy = self._mapper.pointer_delta_to_image_delta(
            pointer[0] - state.start_pointer[0],
            pointer[1] - state.start_pointer[1],
        )
        self._box = apply_drag(
            state.drag_type, state.start_box, dx, dy, self._config, self._mapper.image_bounds(),
        )
        self._publish()
        return self._box

    def on_pointer_up(self) -> Rectangle | None:
        """Commit the current rectangle and return to Idle."""
        if not self.is_dragging:
            return None
        self._end_drag()
        logger.debug("Drag committed: %s", self._box)
        return self._box

    def cancel(self) -> bool:
        """Abort the drag and restore the rectangle from its start."""
        state = self._state
        if not isinstance(state, Dragging):
            return False
        self._box = state.start_box
        self._end_drag()
        logger.debug("Drag cancelled, restored %s", self._box)
        self._publish()
        return True

    def reset(self) -> bool:
        """Restore the initial rectangle for the current image size."""
        if self.is_dragging:
            logger.debug("reset ignored: drag in progress")
            return False
        self._box = self._make_initial_box()
        self._publish()
        return True

    def set_box(self, box: Rectangle) -> bool:
        """Replace the rectangle (constrained) while idle."""
        if self.is_dragging:
            logger.debug("set_box ignored: drag in progress")
            return False
        self._box = constrain_box(box, self._config, self._mapper.image_bounds())
        self._publish()
        return True

    def nudge(self, dx: float, dy: float) -> bool:
        """Move the rectangle by an image-pixel offset while idle."""
        if self.is_dragging:
            return False
        self._box = apply_drag(DRAG_MOVE, self._box, dx, dy, self._config, self._mapper.image_bounds())
        self._publish()
        return True

    # --- Internals ---

    def _end_drag(self):
        self._state = IDLE
        if self._on_release:
            self._on_release()

    def _make_initial_box(self) -> Rectangle:
        bounds = self._mapper.image_bounds()
        return constrain_box(self._initial_box(bounds), self._config, bounds)
