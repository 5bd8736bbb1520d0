"""
Interactive region-overlay widget and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, and the
``RegionOverlayWidget`` that draws the image with a crop or shape region on
top and forwards pointer and keyboard input to the active tool.
"""

from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPainterPath, QPixmap, QColor, QPen, QBrush, QImage, QPolygonF,
    QKeyEvent, QMouseEvent, QPaintEvent,
)

from region_editor.config import HANDLE_SIZE, HANDLE_TOLERANCE, NUDGE_SMALL, NUDGE_LARGE
from region_editor.image_io import open_image
from region_editor.mapping import CoordinateMapper, Layout, fit_layout
from region_editor.models import DRAG_MOVE, DisplayRectangle, ShapeManipulationData
from region_editor.tools import CropTool, RegionTool, ShapeTool
from region_editor.transforms import HEXAGON_POINTS, heart_outline

HANDLE_CURSORS = {
    "nw": Qt.CursorShape.SizeFDiagCursor,
    "se": Qt.CursorShape.SizeFDiagCursor,
    "ne": Qt.CursorShape.SizeBDiagCursor,
    "sw": Qt.CursorShape.SizeBDiagCursor,
    "n": Qt.CursorShape.SizeVerCursor,
    "s": Qt.CursorShape.SizeVerCursor,
    "e": Qt.CursorShape.SizeHorCursor,
    "w": Qt.CursorShape.SizeHorCursor,
    DRAG_MOVE: Qt.CursorShape.SizeAllCursor,
}


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgba = pil_img.convert("RGBA")
    data = img_rgba.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgba.width, img_rgba.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


def shape_path(shape: str, rect: QRectF) -> QPainterPath:
    """Outline of *shape* inscribed in the square *rect* (display coordinates)."""
    path = QPainterPath()
    unit = rect.width() / 24

    def scaled(points):
        return QPolygonF([QPointF(rect.left() + px * unit, rect.top() + py * unit) for px, py in points])

    if shape == "circle":
        path.addEllipse(rect)
    elif shape == "rounded":
        radius = rect.width() * 0.2
        path.addRoundedRect(rect, radius, radius)
    elif shape == "hexagon":
        path.addPolygon(scaled(HEXAGON_POINTS))
        path.closeSubpath()
    elif shape == "heart":
        path.addPolygon(scaled(heart_outline()))
        path.closeSubpath()
    else:
        path.addRect(rect)
    return path


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for opening images (especially large PSDs)."""
    loaded = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            self.loaded.emit(open_image(self._path))
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Region overlay widget: interactive crop/shape overlay on the image
# =============================================================================

class RegionOverlayWidget(QWidget):
    """Widget that displays an image with an interactive crop or shape region."""

    region_changed = pyqtSignal()
    applied = pyqtSignal(str, object)  # tool name, Rectangle or ShapeManipulationData
    cancelled = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._pixmap: QPixmap | None = None
        self._img_w = 0
        self._img_h = 0
        self._loading = False
        self._tool: RegionTool | None = None
        self.mapper = CoordinateMapper(self.display_layout)

    # --- Image ---

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def set_image(self, pil_img: Image.Image):
        """Set the image to display; any active tool is discarded."""
        self.close_tool()
        self._loading = False
        self._pixmap = pil_to_qpixmap(pil_img)
        self._img_w, self._img_h = pil_img.size
        self.update()

    def has_image(self) -> bool:
        return self._pixmap is not None

    def clear(self):
        self.close_tool()
        self._pixmap = None
        self._img_w = 0
        self._img_h = 0
        self.update()

    # --- Coordinate mapping ---

    def display_layout(self) -> Layout:
        """Current image placement, recomputed from the widget size."""
        return fit_layout(self.width(), self.height(), self._img_w, self._img_h)

    def _image_display_rect(self) -> QRectF:
        layout = self.display_layout()
        return QRectF(
            layout.offset_x, layout.offset_y,
            layout.image_width * layout.display_scale, layout.image_height * layout.display_scale,
        )

    # --- Tools ---

    @property
    def tool(self) -> RegionTool | None:
        return self._tool

    def start_crop(self) -> CropTool | None:
        if not self._pixmap:
            return None
        tool = CropTool(self.mapper, **self._tool_callbacks("crop"))
        self._activate(tool)
        return tool

    def start_shape(self, shape: str, saved: ShapeManipulationData | None = None) -> ShapeTool | None:
        if not self._pixmap:
            return None
        tool = ShapeTool(self.mapper, shape=shape, saved=saved, **self._tool_callbacks("shape"))
        self._activate(tool)
        return tool

    def close_tool(self):
        if self._tool is not None and not self._tool.closed:
            self._tool.cancel()
        self._tool = None
        self.unsetCursor()
        self.update()

    def _tool_callbacks(self, name: str) -> dict:
        return {
            "on_apply": lambda data: self._on_tool_finished(name, data),
            "on_cancel": lambda: self._on_tool_finished(name, None),
            "on_capture": self._capture_pointer,
            "on_release": self._release_pointer,
        }

    def _activate(self, tool: RegionTool):
        self.close_tool()
        self._tool = tool
        tool.session.subscribe(self._on_box_changed)
        self.setFocus()
        self.update()

    def _on_box_changed(self, _box):
        self.region_changed.emit()
        self.update()

    def _on_tool_finished(self, name: str, data):
        self._tool = None
        self.unsetCursor()
        self.update()
        if data is None:
            self.cancelled.emit()
        else:
            self.applied.emit(name, data)

    def _capture_pointer(self):
        if self.isVisible():
            self.grabMouse()

    def _release_pointer(self):
        if QWidget.mouseGrabber() is self:
            self.releaseMouse()

    # --- Handle hit testing ---

    def _region_display_rect(self) -> QRectF | None:
        if self._tool is None:
            return None
        d: DisplayRectangle = self._tool.session.display_box
        return QRectF(d.left, d.top, d.width, d.height)

    def _handle_centers(self, r: QRectF) -> dict[str, QPointF]:
        cx = r.left() + r.width() / 2
        cy = r.top() + r.height() / 2
        return {
            "nw": QPointF(r.left(), r.top()),
            "n": QPointF(cx, r.top()),
            "ne": QPointF(r.right(), r.top()),
            "e": QPointF(r.right(), cy),
            "se": QPointF(r.right(), r.bottom()),
            "s": QPointF(cx, r.bottom()),
            "sw": QPointF(r.left(), r.bottom()),
            "w": QPointF(r.left(), cy),
        }

    def hit_test(self, pos: QPointF) -> str | None:
        """Drag type under a widget position: a handle, ``"move"``, or None."""
        r = self._region_display_rect()
        if r is None:
            return None
        reach = HANDLE_SIZE + HANDLE_TOLERANCE
        best, best_dist = None, None
        for handle, center in self._handle_centers(r).items():
            dist = max(abs(pos.x() - center.x()), abs(pos.y() - center.y()))
            if dist <= reach and (best_dist is None or dist < best_dist):
                best, best_dist = handle, dist
        if best is not None:
            return best
        if r.contains(pos):
            return DRAG_MOVE
        return None

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if not self._pixmap:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        painter.drawPixmap(self._image_display_rect().toRect(), self._pixmap)

        region = self._region_display_rect()
        if region is not None:
            self._paint_mask(painter, region)
            self._paint_selection(painter, region)

        painter.end()

    def _paint_mask(self, painter: QPainter, region: QRectF):
        """Darken everything outside the region (or outside the shape)."""
        outside = QPainterPath()
        outside.addRect(QRectF(self.rect()))
        if isinstance(self._tool, ShapeTool):
            inside = shape_path(self._tool.shape, region)
            dim = QColor(0, 0, 0, 153)
        else:
            inside = QPainterPath()
            inside.addRect(region)
            dim = QColor(0, 0, 0, 140)
        painter.fillPath(outside.subtracted(inside), dim)

    def _paint_selection(self, painter: QPainter, region: QRectF):
        # Dashed border
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.setPen(QPen(QColor(255, 255, 255), 1, Qt.PenStyle.DashLine))
        painter.drawRect(region)

        # Rule-of-thirds for crop
        if isinstance(self._tool, CropTool):
            painter.setPen(QPen(QColor(255, 255, 255, 80), 1, Qt.PenStyle.DashLine))
            for i in range(1, 3):
                x = region.left() + region.width() * i / 3
                painter.drawLine(QPointF(x, region.top()), QPointF(x, region.bottom()))
                y = region.top() + region.height() * i / 3
                painter.drawLine(QPointF(region.left(), y), QPointF(region.right(), y))

        # Handles
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        hs = HANDLE_SIZE
        for center in self._handle_centers(region).values():
            painter.drawRect(QRectF(center.x() - hs, center.y() - hs, hs * 2, hs * 2))

        # Size label in image pixels
        box = self._tool.box
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(
            region.adjusted(0, -20, 0, 0).toRect(),
            Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignBottom,
            f"{round(box.width)} × {round(box.height)}",
        )

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or self._tool is None:
            return
        pos = event.position()
        drag_type = self.hit_test(pos)
        if drag_type is not None:
            self._tool.start_drag((pos.x(), pos.y()), drag_type)

    def mouseMoveEvent(self, event: QMouseEvent):
        if self._tool is None:
            return
        pos = event.position()
        if self._tool.session.is_dragging:
            self._tool.on_pointer_move((pos.x(), pos.y()))
            return

        drag_type = self.hit_test(pos)
        if drag_type is None:
            self.setCursor(Qt.CursorShape.ArrowCursor)
        else:
            self.setCursor(HANDLE_CURSORS[drag_type])

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self._tool is not None:
            self._tool.on_pointer_up()

    # --- Keyboard ---

    def keyPressEvent(self, event: QKeyEvent):
        tool = self._tool
        if tool is None:
            super().keyPressEvent(event)
            return

        key = event.key()
        if key == Qt.Key.Key_Escape:
            tool.cancel()
            return
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            tool.apply()
            return

        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        nudges = {
            Qt.Key.Key_Left: (-amount, 0),
            Qt.Key.Key_Right: (amount, 0),
            Qt.Key.Key_Up: (0, -amount),
            Qt.Key.Key_Down: (0, amount),
        }
        if key in nudges:
            tool.nudge(*nudges[key])
        else:
            super().keyPressEvent(event)
