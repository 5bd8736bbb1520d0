import pytest
from PIL import Image

from region_editor.config import SHAPES
from region_editor.mapping import CoordinateMapper, Layout
from region_editor.models import Rectangle, ShapeManipulationData
from region_editor.tools import CropTool
from region_editor.transforms import (
    CropTransform, FlipTransform, RotateTransform, ShapeTransform,
    execute_transform, heart_outline, shape_mask,
)


def marked_image(width=30, height=20):
    """Gray RGB image with a red top-left pixel."""
    img = Image.new("RGB", (width, height), (128, 128, 128))
    img.putpixel((0, 0), (255, 0, 0))
    return img


# =============================================================================
# Masks
# =============================================================================
@pytest.mark.parametrize("shape", SHAPES)
def test_shape_mask_size_and_center(shape):
    mask = shape_mask(shape, 64)
    assert mask.mode == "L"
    assert mask.size == (64, 64)
    assert mask.getpixel((32, 32)) >= 250


@pytest.mark.parametrize("shape", ["circle", "hexagon", "heart", "rounded"])
def test_shape_mask_corners_transparent(shape):
    mask = shape_mask(shape, 64)
    assert mask.getpixel((0, 0)) == 0
    assert mask.getpixel((63, 63)) == 0


def test_square_mask_is_opaque():
    mask = shape_mask("square", 32)
    assert mask.getextrema()[0] >= 250


def test_shape_mask_rejects_bad_input():
    with pytest.raises(ValueError):
        shape_mask("star", 32)
    with pytest.raises(ValueError):
        shape_mask("circle", 0)


def test_heart_outline_is_closed():
    points = heart_outline()
    assert points[0] == points[-1]
    assert all(0 <= x <= 24 and 0 <= y <= 24 for x, y in points)


# =============================================================================
# Crop
# =============================================================================
def test_crop_rounds_to_whole_pixels():
    transform = CropTransform(Rectangle(10.4, 20.6, 30.6, 40.2))
    img = Image.new("RGB", (100, 100))
    assert transform.compute_size(img) == (31, 40)
    assert execute_transform(img, transform).size == (31, 40)


def test_crop_keeps_pixels():
    img = marked_image()
    result = CropTransform(Rectangle(0, 0, 5, 5)).apply(img)
    assert result.getpixel((0, 0)) == (255, 0, 0)


@pytest.mark.parametrize("rect,size", [
    (Rectangle(-1, 0, 10, 10), (9, 10)),
    (Rectangle(95, 0, 10, 10), (5, 10)),
])
def test_crop_is_clamped_to_image(rect, size):
    assert execute_transform(Image.new("RGB", (100, 100)), CropTransform(rect)).size == size


@pytest.mark.parametrize("rect", [
    Rectangle(0, 0, 0, 10),
    Rectangle(0, 0, 0.4, 10),
    Rectangle(150, 0, 10, 10),
])
def test_crop_rejects_rectangle_without_area(rect):
    with pytest.raises(ValueError):
        CropTransform(rect).apply(Image.new("RGB", (100, 100)))


def test_crop_to_right_edge_of_odd_width_image():
    tool = CropTool(CoordinateMapper.fixed(Layout(1015, 600)))
    tool.start_drag((0, 0), "e")
    tool.on_pointer_move((5000, 0))
    box = tool.apply()
    assert box.right == pytest.approx(1015)
    assert box.x == pytest.approx(101.5)

    result = execute_transform(Image.new("RGB", (1015, 600)), CropTransform(box))
    assert result.size == (913, 480)


# =============================================================================
# Shape
# =============================================================================
def test_shape_transform_cuts_manipulated_region():
    img = Image.new("RGB", (200, 100), (255, 0, 0))
    manipulation = ShapeManipulationData("circle", 0.5, 0.5, 1.0)
    result = execute_transform(img, ShapeTransform(manipulation))
    assert result.mode == "RGBA"
    assert result.size == (100, 100)
    assert result.getpixel((50, 50))[:3] == (255, 0, 0)
    assert result.getpixel((50, 50))[3] >= 250
    assert result.getpixel((0, 0))[3] == 0


def test_shape_transform_scales_region():
    img = Image.new("RGB", (200, 100))
    manipulation = ShapeManipulationData("square", 0.25, 0.5, 0.5)
    assert ShapeTransform(manipulation).compute_size(img) == (50, 50)


def test_shape_region_on_half_pixel_edges_stays_inside_image():
    # Square of side 599.5 spanning x 415.5 .. 1015, flush with the right edge
    img = Image.new("RGB", (1015, 601), (0, 255, 0))
    manipulation = ShapeManipulationData("square", (415.5 + 599.5 / 2) / 1015, 0.5, 599.5 / 601)
    result = execute_transform(img, ShapeTransform(manipulation))
    assert result.size == (599, 599)
    assert result.getpixel((598, 300))[:3] == (0, 255, 0)
    assert result.getpixel((598, 300))[3] >= 250


def test_shape_transform_rejects_unknown_shape():
    with pytest.raises(ValueError):
        ShapeTransform(ShapeManipulationData("star"))


# =============================================================================
# Rotate / Flip
# =============================================================================
def test_rotate_90_is_clockwise():
    result = execute_transform(marked_image(), RotateTransform(90))
    assert result.size == (20, 30)
    assert result.getpixel((19, 0)) == (255, 0, 0)


def test_rotate_180():
    result = execute_transform(marked_image(), RotateTransform(180))
    assert result.size == (30, 20)
    assert result.getpixel((29, 19)) == (255, 0, 0)


def test_rotate_270_is_counter_clockwise():
    result = execute_transform(marked_image(), RotateTransform(270))
    assert result.size == (20, 30)
    assert result.getpixel((0, 29)) == (255, 0, 0)


def test_rotate_rejects_other_angles():
    with pytest.raises(ValueError):
        RotateTransform(45)


def test_flip_horizontal_and_vertical():
    img = marked_image()
    assert FlipTransform("horizontal").apply(img).getpixel((29, 0)) == (255, 0, 0)
    assert FlipTransform("vertical").apply(img).getpixel((0, 19)) == (255, 0, 0)


def test_flip_rejects_unknown_direction():
    with pytest.raises(ValueError):
        FlipTransform("diagonal")
