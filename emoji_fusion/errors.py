"""
Error taxonomy for the overlay pipeline.

None of these is fatal to the process: device errors keep the camera inactive,
model/detection errors degrade the estimator to mock output, capture errors
skip a tick.
"""
from __future__ import annotations


class FusionError(Exception):
    """Base class for pipeline errors."""


class DeviceAccessError(FusionError):
    """Camera could not be acquired."""
    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


class CameraPermissionError(DeviceAccessError, PermissionError):
    pass


class CameraNotFoundError(DeviceAccessError):
    pass


class ModelLoadError(FusionError):
    """Face detector failed to initialize; the session falls back to mock estimation."""


class DetectionError(FusionError):
    """A single detection call failed."""


class CaptureError(FusionError):
    """Camera read failed or returned an empty image; the tick is skipped."""
