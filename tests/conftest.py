"""Pytest fixtures for simshot tests."""

import io

import pytest
from PIL import Image

from simshot.config import SimshotConfig
from simshot.devices import DeviceValidator
from simshot.errors import CaptureCommandError, InventoryQueryError
from simshot.paths import OutputPaths
from simshot.screenshot import ScreenshotService

KNOWN_UDID = "0F8E5C2A-1B7D-4E0F-9A3C-6D2B1E4F7A90"
OTHER_UDID = "A1B2C3D4-E5F6-4789-8ABC-DEF012345678"


def make_png(width: int, height: int, color=(30, 120, 200)) -> bytes:
    """Render a solid-color PNG of the given size."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def sample_listing() -> dict:
    """simctl list devices --json output with two runtimes."""
    return {
        "devices": {
            "com.apple.CoreSimulator.SimRuntime.iOS-17-0": [
                {"udid": KNOWN_UDID, "name": "iPhone 15", "state": "Booted", "isAvailable": True},
                {"udid": "", "name": "Broken entry", "state": "Shutdown"},
            ],
            "com.apple.CoreSimulator.SimRuntime.iOS-16-4": [
                {"udid": OTHER_UDID, "name": "iPad Air", "state": "Shutdown"},
                {"name": "No udid", "state": "Shutdown"},
            ],
        }
    }


class FakeSimctl:
    """Stand-in for SimctlClient that records calls."""

    def __init__(self, listing=None, png=None, list_error=None, capture_error=None):
        self.listing = listing if listing is not None else sample_listing()
        self.png = png if png is not None else make_png(1000, 2000)
        self.list_error = list_error
        self.capture_error = capture_error
        self.list_calls = 0
        self.capture_calls: list = []

    async def list_devices(self) -> dict:
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return self.listing

    async def capture_png(self, device_id=None) -> bytes:
        self.capture_calls.append(device_id)
        if self.capture_error:
            raise self.capture_error
        return self.png


@pytest.fixture
def fake_simctl():
    """FakeSimctl returning a 1000x2000 PNG and the sample listing."""
    return FakeSimctl()


@pytest.fixture
def output_root(tmp_path):
    """Root directory for screenshots.

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to the output root
    """
    root = tmp_path / "out"
    root.mkdir()
    return root


@pytest.fixture
def output_paths(output_root):
    """OutputPaths writing to <output_root>/.screenshots."""
    return OutputPaths(root_directory=output_root)


@pytest.fixture
def service(output_paths, fake_simctl, output_root):
    """ScreenshotService wired to the fake simctl and the temporary output root."""
    return ScreenshotService(
        output_paths=output_paths,
        device_validator=DeviceValidator(fake_simctl),
        simctl=fake_simctl,
        config=SimshotConfig(output_root=output_root),
    )


@pytest.fixture
def inventory_error():
    return InventoryQueryError("xcrun not found", code="ENOENT", command="xcrun simctl list devices --json")


@pytest.fixture
def capture_error():
    return CaptureCommandError(
        "Command failed: xcrun simctl io booted screenshot --type=png -\nNo devices are booted.",
        code="149",
        command="xcrun simctl io booted screenshot --type=png -",
        stderr="No devices are booted.\n",
    )
