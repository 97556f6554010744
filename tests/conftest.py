from pathlib import Path

import pytest

from helpers import FACE_POINTS, JACKET_POINTS, FakePoseProvider, StubCatalog
from tryon.config import AppConfig, AssetsConfig, PoseConfig, StorageConfig
from tryon.pose.types import PoseKeypoints


@pytest.fixture
def jacket_keypoints() -> PoseKeypoints:
	return PoseKeypoints.from_named(JACKET_POINTS)


@pytest.fixture
def face_keypoints() -> PoseKeypoints:
	return PoseKeypoints.from_named(FACE_POINTS)


@pytest.fixture
def stub_catalog() -> StubCatalog:
	return StubCatalog()


@pytest.fixture
def test_config(tmp_path: Path) -> AppConfig:
	return AppConfig(
		storage=StorageConfig(uploads_dir=str(tmp_path / "uploads")),
		assets=AssetsConfig(dir=str(tmp_path / "assets")),
		pose=PoseConfig(backend="none"),
	)


@pytest.fixture
def fake_pose() -> FakePoseProvider:
	return FakePoseProvider(points=JACKET_POINTS + FACE_POINTS)


@pytest.fixture
def app_state(test_config, fake_pose):
	from app_state import AppState

	return AppState.from_config(test_config, pose=fake_pose)


@pytest.fixture
def client(app_state):
	from fastapi.testclient import TestClient

	from server import create_app

	with TestClient(create_app(app_state)) as c:
		yield c

