"""
Session-local, recoverable failures.

Routers turn these into HTTP errors; none of them leaves a session half-updated.
"""


class TryOnError(Exception):
	"""Base class for every failure a caller is expected to surface to the user."""


class DetectionUnavailable(TryOnError):
	"""The pose estimator failed or is not installed. Placement falls back to its default rule."""


class AssetUnavailable(TryOnError):
	"""The requested clothing kind does not resolve to a known asset."""

	def __init__(self, kind: object) -> None:
		super().__init__(f"Clothing type not found: {kind!r}")
		self.kind = kind


class InvalidBackground(TryOnError):
	"""Unknown background kind, or a colour that does not parse."""


class NothingToExport(TryOnError):
	"""Export was requested before any image was loaded."""


class NoImageLoaded(TryOnError):
	"""Clothing was selected before any image was loaded."""


class InvalidImage(TryOnError):
	"""Uploaded bytes are not a decodable image."""


class UploadTooLarge(TryOnError):
	def __init__(self, size: int, limit: int) -> None:
		super().__init__(f"Upload is {size} bytes; limit is {limit} bytes")
		self.size = size
		self.limit = limit
