import pytest

from region_editor.mapping import CoordinateMapper, Layout
from region_editor.models import ImageBounds, Rectangle, ShapeManipulationData
from region_editor.tools import (
    CropTool, RegionTool, ShapeTool, box_to_normalized, initial_crop_box, normalized_to_box, shape_config,
)


def fixed(width, height, scale=1.0):
    return CoordinateMapper.fixed(Layout(width, height, display_scale=scale))


def assert_shape(actual: ShapeManipulationData, expected: ShapeManipulationData):
    assert actual.shape == expected.shape
    assert (actual.center_x, actual.center_y, actual.scale) == pytest.approx(
        (expected.center_x, expected.center_y, expected.scale)
    )


# =============================================================================
# Geometry helpers
# =============================================================================
def test_initial_crop_box_is_inset_per_axis():
    assert initial_crop_box(ImageBounds(1000, 600)).as_tuple() == pytest.approx((100, 60, 800, 480))


def test_shape_config_is_square_with_relative_min_size():
    config = shape_config(ImageBounds(1000, 600))
    assert config.aspect_ratio == 1
    assert config.min_size == pytest.approx(60)


def test_normalized_to_box_centers_square():
    data = ShapeManipulationData("heart", 0.25, 0.5, 0.5)
    assert normalized_to_box(data, 1000, 600).as_tuple() == pytest.approx((100, 150, 300, 300))


@pytest.mark.parametrize("data", [
    ShapeManipulationData("circle", 0.5, 0.5, 1.0),
    ShapeManipulationData("hexagon", 0.3, 0.7, 0.25),
    ShapeManipulationData("square", 0.9, 0.1, 0.1),
])
def test_box_to_normalized_inverts_normalized_to_box(data):
    box = normalized_to_box(data, 1000, 600)
    assert_shape(box_to_normalized(box, 1000, 600, data.shape), data)


def test_box_to_normalized_clamps_scale():
    assert box_to_normalized(Rectangle(0, 0, 2000, 2000), 1000, 600).scale == 1.0
    assert box_to_normalized(Rectangle(0, 0, 10, 10), 1000, 600).scale == pytest.approx(0.1)


# =============================================================================
# Crop tool
# =============================================================================
def test_crop_tool_starts_with_margin_box():
    tool = CropTool(fixed(1000, 600))
    assert tool.box.as_tuple() == pytest.approx((100, 60, 800, 480))
    assert tool.session.config.aspect_ratio is None
    assert tool.session.config.min_size == 16


def test_crop_tool_without_image_uses_placeholder_extent():
    tool = CropTool(fixed(0, 0))
    assert tool.box.as_tuple() == pytest.approx((20, 20, 160, 160))


def test_crop_tool_resize_scenario():
    tool = CropTool(fixed(1000, 600))
    tool.start_drag((0, 0), "se")
    tool.on_pointer_move((50, 50))
    tool.on_pointer_up()
    assert tool.box.as_tuple() == pytest.approx((100, 60, 850, 530))


def test_crop_apply_emits_rectangle_and_closes():
    applied = []
    tool = CropTool(fixed(1000, 600), on_apply=applied.append)
    tool.start_drag((0, 0), "move")
    tool.on_pointer_move((10, 0))

    result = tool.apply()
    assert result.as_tuple() == pytest.approx((110, 60, 800, 480))
    assert applied == [result]
    assert tool.closed
    assert not tool.session.is_dragging


def test_closed_tool_ignores_input():
    tool = CropTool(fixed(1000, 600))
    tool.apply()
    box = tool.box
    assert not tool.start_drag((0, 0), "move")
    assert tool.on_pointer_move((50, 50)) is None
    assert not tool.nudge(5, 5)
    assert not tool.reset()
    assert tool.apply() is None
    assert tool.box == box


def test_cancel_restores_and_notifies():
    cancelled = []
    tool = CropTool(fixed(1000, 600), on_cancel=lambda: cancelled.append(True))
    start = tool.box
    tool.start_drag((0, 0), "nw")
    tool.on_pointer_move((30, 30))
    tool.cancel()
    assert tool.box == start
    assert cancelled == [True]
    assert tool.closed

    tool.cancel()
    assert cancelled == [True]


def test_crop_reset_after_move():
    tool = CropTool(fixed(1000, 600))
    tool.nudge(10, 10)
    assert tool.reset()
    assert tool.box.as_tuple() == pytest.approx((100, 60, 800, 480))


# =============================================================================
# Shape tool
# =============================================================================
def test_shape_tool_default_placement():
    tool = ShapeTool(fixed(1000, 600), shape="circle")
    assert tool.box.as_tuple() == pytest.approx((200, 0, 600, 600))
    assert_shape(tool.manipulation, ShapeManipulationData("circle", 0.5, 0.5, 1.0))


def test_shape_tool_starts_from_saved_placement():
    saved = ShapeManipulationData("heart", 0.25, 0.5, 0.5)
    tool = ShapeTool(fixed(1000, 600), shape="heart", saved=saved)
    assert tool.box.as_tuple() == pytest.approx((100, 150, 300, 300))
    assert_shape(tool.manipulation, saved)


def test_shape_tool_ignores_saved_placement_for_other_shape():
    saved = ShapeManipulationData("heart", 0.25, 0.5, 0.5)
    tool = ShapeTool(fixed(1000, 600), shape="circle", saved=saved)
    assert_shape(tool.manipulation, ShapeManipulationData("circle", 0.5, 0.5, 1.0))


def test_shape_tool_clamps_saved_scale():
    saved = ShapeManipulationData("square", 0.5, 0.5, 0.01)
    tool = ShapeTool(fixed(1000, 600), shape="square", saved=saved)
    assert tool.manipulation.scale == pytest.approx(0.1)
    assert tool.box.width == pytest.approx(60)


def test_shape_tool_move_updates_normalized_center():
    tool = ShapeTool(fixed(1000, 600))
    tool.start_drag((0, 0), "move")
    tool.on_pointer_move((100, 0))
    assert tool.manipulation.center_x == pytest.approx(0.6)
    assert tool.manipulation.center_y == pytest.approx(0.5)


def test_shape_tool_edge_resize_stays_square():
    tool = ShapeTool(fixed(1000, 600))
    tool.start_drag((0, 0), "n")
    tool.on_pointer_move((0, 300))
    tool.on_pointer_up()
    assert tool.box.as_tuple() == pytest.approx((350, 300, 300, 300))
    assert_shape(tool.manipulation, ShapeManipulationData("circle", 0.5, 0.75, 0.5))


def test_shape_tool_min_size_floor():
    tool = ShapeTool(fixed(1000, 600))
    tool.start_drag((0, 0), "se")
    tool.on_pointer_move((-1000, -1000))
    assert tool.box.width == pytest.approx(60)
    assert tool.box.height == pytest.approx(60)
    assert tool.manipulation.scale == pytest.approx(0.1)


def test_shape_apply_emits_manipulation():
    applied = []
    tool = ShapeTool(fixed(1000, 600), shape="hexagon", on_apply=applied.append)
    tool.nudge(-100, 0)
    tool.apply()
    assert len(applied) == 1
    assert_shape(applied[0], ShapeManipulationData("hexagon", 0.4, 0.5, 1.0))


def test_region_tool_is_abstract():
    with pytest.raises(TypeError):
        RegionTool(fixed(1000, 600), shape_config(ImageBounds(1000, 600)))
