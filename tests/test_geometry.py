import pytest

from tryon.geometry import Transform2D, fit_to_box, placed_center, placed_corners, to_display


def test_fit_to_box_scales_down_and_centres():
	t = fit_to_box(1000, 1000, 700, 500)
	assert t.scale_x == t.scale_y == pytest.approx(0.5)
	assert (t.left, t.top) == pytest.approx((100.0, 0.0))


def test_fit_to_box_scales_up_small_images():
	t = fit_to_box(350, 100, 700, 500)
	assert t.scale_x == pytest.approx(2.0)
	assert (t.left, t.top) == pytest.approx((0.0, 150.0))


def test_to_display():
	base = Transform2D(scale_x=0.5, scale_y=0.5, left=10, top=20)
	assert to_display(base, 100, 200) == pytest.approx((60.0, 120.0))


def test_corners_rotate_clockwise_about_top_left():
	t = Transform2D(scale_x=1, scale_y=2, left=50, top=50, rotation=90)
	corners = placed_corners(t, 10, 10)
	assert corners[0] == pytest.approx((50, 50))
	assert corners[1] == pytest.approx((50, 60))  # right edge now points down
	assert corners[3] == pytest.approx((30, 50))
	assert placed_center(t, 10, 10) == pytest.approx((40, 55))


def test_with_changes_keeps_other_fields():
	t = Transform2D(scale_x=1, scale_y=1, left=1, top=2, rotation=3)
	assert t.with_changes(left=5) == Transform2D(scale_x=1, scale_y=1, left=5, top=2, rotation=3)
