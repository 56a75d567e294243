"""Pydantic models for simulator devices and device id validation."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class DeviceRecord(BaseModel):
    """A simulator device from the simctl inventory."""

    udid: str = Field(description="Device UUID")
    name: str = Field(description="Display name, e.g. 'iPhone 15'")
    state: str = Field(description="State label, e.g. 'Booted' or 'Shutdown'")
    runtime: Optional[str] = Field(default=None, description="Runtime group the device belongs to")

    model_config = {"frozen": True}


class ValidationReason(str, Enum):
    """Why a device id was rejected."""

    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    FETCH_FAILED = "fetch_failed"


class ValidationOutcome(BaseModel):
    """Result of validating a device id. Built per call, never cached."""

    is_valid: bool
    error_message: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None

    model_config = {"frozen": True}

    @classmethod
    def valid(cls) -> "ValidationOutcome":
        return cls(is_valid=True)

    @classmethod
    def invalid(
        cls,
        device_id: str,
        reason: ValidationReason,
        message: str,
        cause: Optional[str] = None,
    ) -> "ValidationOutcome":
        details: dict[str, Any] = {"device_id": device_id, "reason": reason.value}
        if cause is not None:
            details["cause"] = cause
        return cls(is_valid=False, error_message=message, error_details=details)

    @property
    def reason(self) -> Optional[ValidationReason]:
        if not self.error_details:
            return None
        return ValidationReason(self.error_details["reason"])
