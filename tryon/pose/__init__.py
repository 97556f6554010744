"""
Pose estimation utilities.

This package defines a model-agnostic keypoint contract and provider adapters
(e.g., MediaPipe Pose) so the placement code never depends on a specific model.
"""
