"""Simulator device id validation."""

import logging
import re
from typing import Iterator

from .config import BOOTED_DEVICE
from .errors import SimshotError
from .models.device import DeviceRecord, ValidationOutcome, ValidationReason
from .simulator import SimctlClient

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def iter_devices(listing: dict) -> Iterator[tuple[str, dict]]:
    """Yield (runtime, device entry) pairs from a simctl device listing."""
    for runtime, group in (listing.get("devices") or {}).items():
        if not isinstance(group, list):
            continue
        for device in group:
            if isinstance(device, dict):
                yield runtime, device


class DeviceValidator:
    """Decides whether a device id may be used for a capture.

    Checks run in order and stop at the first rejection: the 'booted'
    sentinel, the UUID format, then membership in the live inventory. Every
    failure is returned as a ValidationOutcome; nothing is raised.
    """

    def __init__(self, simctl: SimctlClient | None = None):
        self.simctl = simctl or SimctlClient()

    async def validate(self, device_id: str) -> ValidationOutcome:
        if device_id == BOOTED_DEVICE:
            return ValidationOutcome.valid()

        if not UUID_PATTERN.fullmatch(device_id):
            logger.warning(f"Invalid device ID format: {device_id}")
            return ValidationOutcome.invalid(
                device_id,
                ValidationReason.INVALID_FORMAT,
                f"Invalid device ID format: {device_id}",
            )

        try:
            listing = await self.simctl.list_devices()
        except SimshotError as e:
            logger.error(f"Error fetching device list: {e}")
            return ValidationOutcome.invalid(
                device_id,
                ValidationReason.FETCH_FAILED,
                "Error fetching device list",
                cause=str(e),
            )

        for _runtime, device in iter_devices(listing):
            if device.get("udid") == device_id:
                return ValidationOutcome.valid()

        logger.warning(f"Device ID not found in available devices: {device_id}")
        return ValidationOutcome.invalid(
            device_id,
            ValidationReason.NOT_FOUND,
            f"Device ID not found in available devices: {device_id}",
        )

    async def is_valid(self, device_id: str) -> bool:
        outcome = await self.validate(device_id)
        return outcome.is_valid

    async def list_available_devices(self) -> list[DeviceRecord]:
        """List every device in the inventory.

        Entries missing a udid, name or state are skipped. Returns an empty
        list if the inventory cannot be fetched.
        """
        try:
            listing = await self.simctl.list_devices()
        except SimshotError as e:
            logger.error(f"Error getting available device IDs: {e}")
            return []

        devices = []
        for runtime, device in iter_devices(listing):
            udid, name, state = device.get("udid"), device.get("name"), device.get("state")
            if udid and name and state:
                devices.append(
                    DeviceRecord(udid=str(udid), name=str(name), state=str(state), runtime=runtime)
                )
        return devices
