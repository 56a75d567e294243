"""Pydantic models for simshot."""

from .capture import CaptureErrorInfo, CaptureRequest, CaptureResult, ImageMetadata
from .device import DeviceRecord, ValidationOutcome, ValidationReason

__all__ = [
    # Capture
    "CaptureRequest",
    "CaptureResult",
    "CaptureErrorInfo",
    "ImageMetadata",
    # Devices
    "DeviceRecord",
    "ValidationOutcome",
    "ValidationReason",
]
