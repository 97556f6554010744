"""Provider selection and the image -> keypoints boundary used by the server."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PIL import Image

from tryon.config import PoseConfig
from tryon.errors import DetectionUnavailable
from tryon.pose.base import NullPoseProvider, PoseProvider
from tryon.pose.types import PoseKeypoints

logger = logging.getLogger(__name__)


def build_pose_provider(cfg: PoseConfig) -> PoseProvider:
	"""
	Create the configured provider. If the model stack is unavailable the app keeps
	running without detection; placement then uses its fallback rule.
	"""
	backend = (cfg.backend or "").strip().lower()
	if backend in ("", "none", "off"):
		return NullPoseProvider()
	if backend != "mediapipe":
		logger.warning("[Pose] unknown pose backend %r; pose detection disabled.", cfg.backend)
		return NullPoseProvider()
	from tryon.pose.mediapipe_provider import MediaPipePoseProvider

	try:
		return MediaPipePoseProvider(
			model_complexity=cfg.model_complexity,
			min_detection_confidence=cfg.min_detection_confidence,
		)
	except DetectionUnavailable as e:
		logger.warning("[Pose] %s; pose detection disabled.", e)
		return NullPoseProvider()


def detect_image(provider: PoseProvider, image: Image.Image) -> Optional[PoseKeypoints]:
	"""
	Run the provider on a decoded image. Returns None when no subject is found or
	when the estimator fails (DetectionUnavailable is logged, never propagated).
	"""
	rgb = np.asarray(image.convert("RGB"), dtype=np.uint8)
	try:
		return provider.detect_rgb(rgb)
	except DetectionUnavailable as e:
		logger.warning("[Pose] detection unavailable (%s): %s", provider.name(), e)
		return None
