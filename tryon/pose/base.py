from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tryon.pose.types import PoseKeypoints


class PoseProvider(ABC):
	"""
	Model adapter interface.

	Implementations take an RGB image (H,W,3 uint8) and return the keypoints of
	the single detected subject, or None when no subject was found. Failures of
	the model itself are raised as DetectionUnavailable.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def detect_rgb(self, rgb) -> Optional[PoseKeypoints]: ...

	@abstractmethod
	def close(self) -> None: ...


class NullPoseProvider(PoseProvider):
	"""Reports no subject for every image. Used when pose.backend is "none"."""

	def name(self) -> str:
		return "none"

	def detect_rgb(self, rgb) -> Optional[PoseKeypoints]:
		return None

	def close(self) -> None:
		return None
