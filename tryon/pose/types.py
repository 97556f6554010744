from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class KeypointName(str, Enum):
	"""COCO-17 keypoint names, the set every provider maps onto."""

	NOSE = "nose"
	LEFT_EYE = "left_eye"
	RIGHT_EYE = "right_eye"
	LEFT_EAR = "left_ear"
	RIGHT_EAR = "right_ear"
	LEFT_SHOULDER = "left_shoulder"
	RIGHT_SHOULDER = "right_shoulder"
	LEFT_ELBOW = "left_elbow"
	RIGHT_ELBOW = "right_elbow"
	LEFT_WRIST = "left_wrist"
	RIGHT_WRIST = "right_wrist"
	LEFT_HIP = "left_hip"
	RIGHT_HIP = "right_hip"
	LEFT_KNEE = "left_knee"
	RIGHT_KNEE = "right_knee"
	LEFT_ANKLE = "left_ankle"
	RIGHT_ANKLE = "right_ankle"

	@classmethod
	def parse(cls, value: Any) -> Optional["KeypointName"]:
		try:
			return cls(str(value).strip().lower())
		except ValueError:
			return None


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D keypoint in pixel coordinates of the original (undistorted) image.
	"""

	name: KeypointName
	x_px: float
	y_px: float
	score: float = 1.0  # confidence/visibility [0..1] best-effort


@dataclass(frozen=True)
class PoseKeypoints:
	"""
	Model-agnostic pose output for a single still image (single subject).

	- Coordinates are in pixel space of the image the provider was given.
	- A name missing from `keypoints` means the provider did not report it.
	"""

	backend: str
	width: int
	height: int
	keypoints: Dict[KeypointName, Keypoint] = field(default_factory=dict)

	def get(self, name: KeypointName, min_score: float = 0.0) -> Optional[Keypoint]:
		kp = self.keypoints.get(name)
		if kp is None or float(kp.score) < float(min_score):
			return None
		return kp

	def require(self, *names: KeypointName, min_score: float = 0.0) -> Optional[Tuple[Keypoint, ...]]:
		"""All requested keypoints, in order, or None if any is absent."""
		found = []
		for n in names:
			kp = self.get(n, min_score=min_score)
			if kp is None:
				return None
			found.append(kp)
		return tuple(found)

	def __len__(self) -> int:
		return len(self.keypoints)

	def to_list(self) -> list[Dict[str, Any]]:
		return [
			{"name": kp.name.value, "x": kp.x_px, "y": kp.y_px, "score": kp.score}
			for kp in self.keypoints.values()
		]

	@classmethod
	def from_named(
		cls,
		points: Iterable[Mapping[str, Any]],
		backend: str = "external",
		width: int = 0,
		height: int = 0,
	) -> "PoseKeypoints":
		"""
		Build from a loose `[{name, x, y, score}]` list. Unknown names are dropped;
		a repeated name keeps its first occurrence.
		"""
		kps: Dict[KeypointName, Keypoint] = {}
		for p in points:
			name = KeypointName.parse(p.get("name"))
			if name is None or name in kps:
				continue
			score = p.get("score")
			try:
				kps[name] = Keypoint(
					name=name,
					x_px=float(p["x"]),
					y_px=float(p["y"]),
					score=float(score) if score is not None else 1.0,
				)
			except (KeyError, TypeError, ValueError):
				continue
		return cls(backend=backend, width=int(width), height=int(height), keypoints=kps)
