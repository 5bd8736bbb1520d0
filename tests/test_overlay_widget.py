import pytest

pytest.importorskip("PyQt6")

from PIL import Image
from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QMouseEvent

from region_editor.models import Rectangle, ShapeManipulationData
from region_editor.overlay_widget import RegionOverlayWidget, pil_to_qpixmap, shape_path


def mouse_event(kind, x, y, button=Qt.MouseButton.LeftButton):
    buttons = Qt.MouseButton.NoButton if kind == QEvent.Type.MouseButtonRelease else Qt.MouseButton.LeftButton
    pos = QPointF(x, y)
    return QMouseEvent(kind, pos, pos, button, buttons, Qt.KeyboardModifier.NoModifier)


@pytest.fixture
def widget(qtbot):
    w = RegionOverlayWidget()
    qtbot.addWidget(w)
    w.resize(400, 300)
    w.set_image(Image.new("RGB", (800, 600), (90, 90, 90)))
    return w


def display_tuple(widget):
    d = widget.tool.session.display_box
    return d.left, d.top, d.width, d.height


def test_pil_to_qpixmap_size(qapp):
    pixmap = pil_to_qpixmap(Image.new("RGBA", (12, 7)))
    assert (pixmap.width(), pixmap.height()) == (12, 7)


def test_layout_letterboxes_image(widget):
    layout = widget.display_layout()
    assert layout.display_scale == pytest.approx(0.5)
    assert (layout.offset_x, layout.offset_y) == pytest.approx((0, 0))


def test_no_tool_without_image(qtbot):
    w = RegionOverlayWidget()
    qtbot.addWidget(w)
    assert w.start_crop() is None
    assert w.hit_test(QPointF(10, 10)) is None


def test_crop_region_in_display_space(widget):
    widget.start_crop()
    assert display_tuple(widget) == pytest.approx((40, 30, 320, 240))


@pytest.mark.parametrize("x,y,expected", [
    (40, 30, "nw"),
    (50, 40, "nw"),
    (200, 30, "n"),
    (360, 270, "se"),
    (360, 150, "e"),
    (200, 150, "move"),
    (5, 295, None),
])
def test_hit_test(widget, x, y, expected):
    widget.start_crop()
    assert widget.hit_test(QPointF(x, y)) == expected


def test_mouse_drag_moves_region_in_image_pixels(widget):
    widget.start_crop()
    widget.mousePressEvent(mouse_event(QEvent.Type.MouseButtonPress, 200, 150))
    assert widget.tool.session.is_dragging
    widget.mouseMoveEvent(mouse_event(QEvent.Type.MouseMove, 220, 150))
    widget.mouseReleaseEvent(mouse_event(QEvent.Type.MouseButtonRelease, 220, 150))
    assert not widget.tool.session.is_dragging
    assert widget.tool.box.as_tuple() == pytest.approx((120, 60, 640, 480))


def test_region_follows_widget_resize(widget):
    widget.start_crop()
    widget.resize(800, 600)
    assert display_tuple(widget) == pytest.approx((80, 60, 640, 480))


def test_enter_applies_crop(qtbot, widget):
    widget.start_crop()
    with qtbot.waitSignal(widget.applied) as blocker:
        qtbot.keyClick(widget, Qt.Key.Key_Return)
    name, data = blocker.args
    assert name == "crop"
    assert isinstance(data, Rectangle)
    assert data.as_tuple() == pytest.approx((80, 60, 640, 480))
    assert widget.tool is None


def test_escape_cancels(qtbot, widget):
    widget.start_crop()
    with qtbot.waitSignal(widget.cancelled):
        qtbot.keyClick(widget, Qt.Key.Key_Escape)
    assert widget.tool is None


def test_arrow_keys_nudge(qtbot, widget):
    widget.start_crop()
    qtbot.keyClick(widget, Qt.Key.Key_Right)
    assert widget.tool.box.x == pytest.approx(81)
    qtbot.keyClick(widget, Qt.Key.Key_Up, Qt.KeyboardModifier.ShiftModifier)
    assert widget.tool.box.y == pytest.approx(50)


def test_shape_tool_starts_from_saved(widget):
    saved = ShapeManipulationData("hexagon", 0.5, 0.5, 0.5)
    tool = widget.start_shape("hexagon", saved)
    assert tool.box.as_tuple() == pytest.approx((250, 150, 300, 300))
    assert display_tuple(widget) == pytest.approx((125, 75, 150, 150))


def test_new_image_discards_tool(qtbot, widget):
    widget.start_crop()
    with qtbot.waitSignal(widget.cancelled):
        widget.set_image(Image.new("RGB", (100, 100)))
    assert widget.tool is None


@pytest.mark.parametrize("shape", ["circle", "square", "rounded", "hexagon", "heart"])
def test_shape_path_fits_rect(qapp, shape):
    from PyQt6.QtCore import QRectF

    rect = QRectF(10, 20, 240, 240)
    bounds = shape_path(shape, rect).boundingRect()
    assert rect.adjusted(-1, -1, 1, 1).contains(bounds)
    assert shape_path(shape, rect).contains(rect.center())


def test_paint_does_not_fail(widget):
    widget.start_shape("heart")
    pixmap = widget.grab()
    assert not pixmap.isNull()
