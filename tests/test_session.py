import pytest

from helpers import StubCatalog
from tryon.errors import AssetUnavailable, InvalidBackground, NoImageLoaded, NothingToExport
from tryon.geometry import Transform2D
from tryon.session import (
	BRAND_PINK,
	BackgroundKind,
	InteractionMode,
	OverlaySession,
	SessionState,
	TransformDelta,
)


class RecordingSurface:
	def __init__(self):
		self.scenes = []

	def flatten(self, scene):
		self.scenes.append(scene)
		return b"png"


@pytest.fixture
def session():
	s = OverlaySession()
	# 700x500 fits the default box exactly, so display space == image space.
	s.load_image("/uploads/a.png", (700, 500))
	return s


@pytest.fixture
def placed(session, jacket_keypoints, stub_catalog):
	session.set_keypoints(jacket_keypoints)
	session.select_clothing("jacket", stub_catalog)
	return session


def test_state_progression(jacket_keypoints, stub_catalog):
	s = OverlaySession()
	assert s.state == SessionState.NO_IMAGE
	s.load_image("/uploads/a.png", (1400, 1000))
	assert s.state == SessionState.IMAGE_LOADED
	assert s.pose_pending
	s.set_keypoints(jacket_keypoints)
	s.select_clothing("hoodie", stub_catalog)
	assert s.state == SessionState.CLOTHING_PLACED
	s.select_clothing("cap", stub_catalog)
	assert s.state == SessionState.CLOTHING_PLACED
	assert s.clothing.kind.value == "cap"


def test_load_image_fits_box_and_honours_viewport():
	s = OverlaySession()
	base = s.load_image("/uploads/a.png", (1000, 1000), viewport_width=400)
	assert s.canvas_size == (400, 500)
	assert base.display_transform.scale_x == pytest.approx(0.4)
	assert base.display_transform.top == pytest.approx(50.0)


def test_load_image_clears_keypoints_and_clothing(placed):
	placed.load_image("/uploads/b.png", (300, 300))
	assert placed.keypoints is None
	assert placed.clothing is None
	assert placed.state == SessionState.IMAGE_LOADED


def test_keypoints_are_set_once(session, jacket_keypoints, face_keypoints):
	assert session.set_keypoints(jacket_keypoints)
	assert not session.set_keypoints(face_keypoints)
	assert session.keypoints is jacket_keypoints


def test_absent_detection_still_resolves_pose(session, stub_catalog):
	assert session.set_keypoints(None)
	assert not session.pose_pending
	assert session.select_clothing("jacket", stub_catalog).transform.scale_x == 0.5


def test_stale_keypoints_are_ignored(session, jacket_keypoints):
	old_id = session.base_image.image_id
	session.load_image("/uploads/b.png", (700, 500))
	assert not session.set_keypoints(jacket_keypoints, image_id=old_id)
	assert session.pose_pending
	assert session.set_keypoints(jacket_keypoints, image_id=session.base_image.image_id)


def test_select_clothing_requires_image(stub_catalog):
	with pytest.raises(NoImageLoaded):
		OverlaySession().select_clothing("jacket", stub_catalog)


def test_unknown_kind_leaves_state_unchanged(placed, stub_catalog):
	before = placed.clothing.transform
	with pytest.raises(AssetUnavailable):
		placed.select_clothing("scarf", stub_catalog)
	assert placed.clothing.kind.value == "jacket"
	assert placed.clothing.transform == before


def test_kind_missing_from_catalog_is_unavailable(session):
	catalog = StubCatalog({"jacket": (300, 300)})

	class Strict:
		def resolve(self, kind):
			try:
				return catalog.resolve(kind)
			except KeyError:
				raise AssetUnavailable(kind)

	with pytest.raises(AssetUnavailable):
		session.select_clothing("cap", Strict())
	assert session.clothing is None


def test_selection_uses_placement_and_defaults_to_locked(placed):
	t = placed.clothing.transform
	assert t.scale_x == pytest.approx(0.8)
	assert (t.left, t.top) == pytest.approx((30.0, 152.0))
	assert placed.interaction_mode == InteractionMode.LOCKED


def test_move_mode_locks_scale_and_rotation(placed):
	placed.set_interaction_mode("move")
	before = placed.clothing.transform
	res = placed.apply_user_transform_delta(TransformDelta(scale_x=2))
	assert res.rejected == ("scale_x",)
	assert placed.clothing.transform == before

	res = placed.apply_user_transform_delta(TransformDelta(left=10, rotation=15))
	assert res.applied == ("left",)
	assert res.rejected == ("rotation",)
	assert placed.clothing.transform.left == pytest.approx(before.left + 10)
	assert placed.clothing.transform.rotation == 0.0


def test_resize_mode_allows_position_scale_and_rotation_together(placed):
	# Resize mode also frees position, so a single gesture may move and resize.
	placed.set_interaction_mode(InteractionMode.RESIZE)
	before = placed.clothing.transform
	res = placed.apply_user_transform_delta(TransformDelta(left=-5, top=4, scale_x=1.5, scale_y=0.5, rotation=30))
	assert set(res.applied) == {"left", "top", "scale_x", "scale_y", "rotation"}
	t = placed.clothing.transform
	assert t.scale_x == pytest.approx(before.scale_x * 1.5)
	assert t.scale_y == pytest.approx(before.scale_y * 0.5)
	assert (t.left, t.top, t.rotation) == pytest.approx((before.left - 5, before.top + 4, 30))


def test_default_mode_leaves_every_handle_free(placed):
	res = placed.apply_user_transform_delta(TransformDelta(scale_x=1.1, top=1))
	assert res.rejected == ()


@pytest.mark.parametrize("factor", [0, -1, float("inf"), float("nan")])
def test_scale_factors_must_keep_scale_positive(placed, factor):
	placed.set_interaction_mode("resize")
	before = placed.clothing.transform
	res = placed.apply_user_transform_delta(TransformDelta(scale_x=factor))
	assert res.rejected == ("scale_x",)
	assert placed.clothing.transform == before


def test_mode_and_delta_without_clothing_are_noops(session):
	assert not session.set_interaction_mode("move")
	assert session.interaction_mode == InteractionMode.LOCKED
	res = session.apply_user_transform_delta(TransformDelta(left=1))
	assert res.transform is None
	assert res.rejected == ("left",)


def test_reset_position_round_trips_to_fresh_placement(placed, stub_catalog, jacket_keypoints):
	placed.set_interaction_mode("resize")
	placed.apply_user_transform_delta(TransformDelta(left=33, scale_x=1.7, rotation=12))
	placed.set_interaction_mode("move")
	placed.apply_user_transform_delta(TransformDelta(top=-40))
	placed.reset_clothing_position()

	fresh = OverlaySession()
	fresh.load_image("/uploads/a.png", (700, 500))
	fresh.set_keypoints(jacket_keypoints)
	expected = fresh.select_clothing("jacket", stub_catalog).transform
	assert placed.clothing.transform == expected
	assert placed.interaction_mode == InteractionMode.LOCKED


def test_reset_position_without_clothing(session):
	assert session.reset_clothing_position() is None


def test_background_rules(session):
	assert session.set_background("solid").color == BRAND_PINK
	bg = session.set_background("custom", "#00ff00")
	assert bg.rgba() == (0, 255, 0, 255)
	with pytest.raises(InvalidBackground):
		session.set_background("custom")
	with pytest.raises(InvalidBackground):
		session.set_background("custom", "not-a-colour")
	with pytest.raises(InvalidBackground):
		session.set_background("plaid", "#fff")
	assert session.background == bg
	assert session.set_background("transparent", "#fff").rgba() == (0, 0, 0, 0)
	assert session.background.kind == BackgroundKind.TRANSPARENT


def test_export_requires_image():
	surface = RecordingSurface()
	with pytest.raises(NothingToExport):
		OverlaySession().export_flattened(surface)
	assert surface.scenes == []


def test_export_scene_order(placed):
	surface = RecordingSurface()
	placed.set_background("solid")
	assert placed.export_flattened(surface) == b"png"
	scene = surface.scenes[0]
	assert (scene.width, scene.height) == (700, 500)
	assert scene.background == (255, 54, 199, 255)
	assert [layer.source_ref for layer in scene.layers] == ["/uploads/a.png", "/api/clothing/jacket"]
	assert scene.layers[1].transform == placed.clothing.transform


def test_export_without_clothing_has_only_base(session):
	surface = RecordingSurface()
	session.export_flattened(surface)
	assert len(surface.scenes[0].layers) == 1


def test_reset_discards_everything(placed):
	placed.set_background("solid")
	placed.reset()
	assert placed.state == SessionState.NO_IMAGE
	assert placed.background.kind == BackgroundKind.TRANSPARENT
	assert placed.keypoints is None


def test_snapshot_shape(placed):
	snap = placed.snapshot()
	assert snap["state"] == "clothing_placed"
	assert snap["clothing"]["transform"] == placed.clothing.transform.to_dict()
	assert snap["capabilities"] == ["left", "rotation", "scale_x", "scale_y", "top"]
	assert isinstance(placed.clothing.transform, Transform2D)


def test_upload_id_is_cleared_with_its_image(session):
	session.upload_id = 7
	session.load_image("/uploads/b.png", (700, 500))
	assert session.upload_id is None
	session.upload_id = 8
	session.reset()
	assert session.upload_id is None
