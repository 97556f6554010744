from __future__ import annotations

import threading
from typing import Optional

from tryon.errors import DetectionUnavailable
from tryon.pose.base import PoseProvider
from tryon.pose.types import Keypoint, KeypointName, PoseKeypoints


class MediaPipePoseProvider(PoseProvider):
	"""
	MediaPipe Pose provider that outputs the canonical COCO-17 keypoint set.

	Notes:
	- Runs in static image mode; every upload is an independent still.
	- MediaPipe uses normalized coordinates; we convert to pixel space.
	- `visibility` is used as score (best-effort).
	- The underlying graph is not thread-safe, so calls are serialised.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except ImportError as e:
			raise DetectionUnavailable(
				"MediaPipe is not installed. Install pose deps with: pip install mediapipe"
			) from e

		self._mp = mp
		self._lock = threading.Lock()
		self._pose = mp.solutions.pose.Pose(
			static_image_mode=True,
			model_complexity=int(model_complexity),
			enable_segmentation=False,
			min_detection_confidence=float(min_detection_confidence),
		)

	def name(self) -> str:
		return "mediapipe_pose"

	def detect_rgb(self, rgb) -> Optional[PoseKeypoints]:
		# rgb: HxWx3
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		try:
			with self._lock:
				res = self._pose.process(rgb)
		except Exception as e:
			raise DetectionUnavailable(f"MediaPipe inference failed: {e!r}") from e
		if not res or not getattr(res, "pose_landmarks", None):
			return None

		lm = res.pose_landmarks.landmark
		# Map COCO names using MediaPipe PoseLandmark indices
		PL = self._mp.solutions.pose.PoseLandmark
		mapping = {
			KeypointName.NOSE: PL.NOSE,
			KeypointName.LEFT_EYE: PL.LEFT_EYE,
			KeypointName.RIGHT_EYE: PL.RIGHT_EYE,
			KeypointName.LEFT_EAR: PL.LEFT_EAR,
			KeypointName.RIGHT_EAR: PL.RIGHT_EAR,
			KeypointName.LEFT_SHOULDER: PL.LEFT_SHOULDER,
			KeypointName.RIGHT_SHOULDER: PL.RIGHT_SHOULDER,
			KeypointName.LEFT_ELBOW: PL.LEFT_ELBOW,
			KeypointName.RIGHT_ELBOW: PL.RIGHT_ELBOW,
			KeypointName.LEFT_WRIST: PL.LEFT_WRIST,
			KeypointName.RIGHT_WRIST: PL.RIGHT_WRIST,
			KeypointName.LEFT_HIP: PL.LEFT_HIP,
			KeypointName.RIGHT_HIP: PL.RIGHT_HIP,
			KeypointName.LEFT_KNEE: PL.LEFT_KNEE,
			KeypointName.RIGHT_KNEE: PL.RIGHT_KNEE,
			KeypointName.LEFT_ANKLE: PL.LEFT_ANKLE,
			KeypointName.RIGHT_ANKLE: PL.RIGHT_ANKLE,
		}
		out = PoseKeypoints(backend=self.name(), width=w, height=h)
		for name, idx in mapping.items():
			if int(idx) >= len(lm):
				continue
			p = lm[int(idx)]
			out.keypoints[name] = Keypoint(
				name=name,
				x_px=float(p.x) * float(w),
				y_px=float(p.y) * float(h),
				score=float(getattr(p, "visibility", 0.0) or 0.0),
			)
		return out

	def close(self) -> None:
		with self._lock:
			if self._pose is not None:
				self._pose.close()
				self._pose = None
