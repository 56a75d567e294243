"""Screenshot capture pipeline.

One call to ScreenshotService.capture() runs, in order: choose a filename,
resolve and create the output directory, validate the device id, run the
simctl screenshot command, write the PNG, optionally downscale it, and read
back its metadata. Any failure before the result is built ends the capture
with a failure CaptureResult; resize and metadata errors only degrade it.
"""

import asyncio
import errno
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import BOOTED_DEVICE, SimshotConfig
from .devices import DeviceValidator
from .errors import InvalidDeviceIdError, PersistError, SimshotError
from .imaging import read_metadata, resize_to_max_width
from .models.capture import CaptureRequest, CaptureResult
from .paths import OutputPaths
from .simulator import SimctlClient

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error capturing iOS Simulator screenshot"
SUCCESS_MESSAGE = "iOS Simulator screenshot saved successfully"


def default_filename(prefix: str = "simulator_", now: Optional[datetime] = None) -> str:
    """Timestamped PNG filename, e.g. simulator_2026-01-11T12-00-00-000Z.png."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{prefix}{stamp.replace(':', '-').replace('.', '-')}.png"


def display_path(path: Path) -> str:
    """Path relative to the working directory when inside it, else absolute."""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def _write_bytes(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise PersistError(
            f"Cannot write screenshot to {path}: {e.strerror or e}",
            code=errno.errorcode.get(e.errno, "UNKNOWN_ERROR") if e.errno else None,
        ) from e
    except ValueError as e:
        raise PersistError(f"Cannot write screenshot to {path}: {e}", code="INVALID_PATH") from e


def _ensure_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistError(
            f"Cannot create output directory {directory}: {e.strerror or e}",
            code=errno.errorcode.get(e.errno, "UNKNOWN_ERROR") if e.errno else None,
        ) from e
    except ValueError as e:
        raise PersistError(f"Cannot create output directory {directory}: {e}", code="INVALID_PATH") from e


class ScreenshotService:
    """Captures iOS Simulator screenshots.

    The shared OutputPaths is never mutated per request; each capture works
    on its own copy from OutputPaths.for_request(), so concurrent captures
    with different subdirectories do not interfere.
    """

    def __init__(
        self,
        output_paths: Optional[OutputPaths] = None,
        device_validator: Optional[DeviceValidator] = None,
        simctl: Optional[SimctlClient] = None,
        config: Optional[SimshotConfig] = None,
    ):
        self.config = config or SimshotConfig()
        self.output_paths = output_paths or OutputPaths.from_config(self.config)
        self.simctl = simctl or SimctlClient.from_config(self.config)
        self.device_validator = device_validator or DeviceValidator(self.simctl)
        self._background_tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: SimshotConfig) -> "ScreenshotService":
        simctl = SimctlClient.from_config(config)
        return cls(
            output_paths=OutputPaths.from_config(config),
            device_validator=DeviceValidator(simctl),
            simctl=simctl,
            config=config,
        )

    async def capture_screenshot(self, **options) -> CaptureResult:
        """Capture with CaptureRequest fields given as keyword arguments."""
        options.setdefault("max_width", self.config.default_max_width)
        return await self.capture(CaptureRequest(**options))

    async def capture(self, request: Optional[CaptureRequest] = None) -> CaptureResult:
        """Run one capture.

        Args:
            request: Capture options; defaults apply to anything unset

        Returns:
            CaptureResult with file path and metadata on success, or error
            details on failure
        """
        if request is None:
            request = CaptureRequest(max_width=self.config.default_max_width)

        try:
            filename = request.output_filename or default_filename(self.config.filename_prefix)

            paths = self.output_paths.for_request(request.output_directory_name)
            output_path = paths.resolve(filename)
            if not paths.is_within_root(output_path):
                raise PersistError("Invalid output path: Path traversal detected", code="PATH_TRAVERSAL")
            _ensure_directory(output_path.parent)

            device_id = request.device_id
            if device_id and device_id != BOOTED_DEVICE:
                outcome = await self.device_validator.validate(device_id)
                if not outcome.is_valid:
                    self._log_available_devices_in_background()
                    raise InvalidDeviceIdError(
                        f"Invalid device ID: {device_id}. {outcome.error_message}. "
                        f"Use '{BOOTED_DEVICE}' or a valid simulator UUID."
                    )

            data = await self.simctl.capture_png(device_id)
            await asyncio.to_thread(_write_bytes, output_path, data)
            logger.info(f"Screenshot written to {output_path} ({len(data)} bytes)")

            if request.resize:
                resize = await asyncio.to_thread(resize_to_max_width, output_path, request.max_width)
                if resize.status == "failed":
                    logger.warning(f"Keeping original image, resize failed: {resize.error}")
                else:
                    logger.debug(f"Resize {resize.status}: {resize.original_width}px -> {resize.width}px")

            metadata = await asyncio.to_thread(read_metadata, output_path)

            return CaptureResult.ok(
                message=SUCCESS_MESSAGE,
                file_path=display_path(output_path),
                metadata=metadata.metadata,
            )

        except SimshotError as e:
            return CaptureResult.failure(
                f"{ERROR_PREFIX}: {e}",
                code=e.code,
                command=e.command,
                stderr=e.stderr,
            )
        except OSError as e:
            return CaptureResult.failure(
                f"{ERROR_PREFIX}: {e}",
                code=errno.errorcode.get(e.errno, "UNKNOWN_ERROR") if e.errno else "UNKNOWN_ERROR",
            )

    def _log_available_devices_in_background(self) -> None:
        task = asyncio.get_running_loop().create_task(self._log_available_devices())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _log_available_devices(self) -> None:
        devices = await self.device_validator.list_available_devices()
        if not devices:
            logger.info("No available simulator devices found")
            return
        logger.info("Available devices:")
        for device in devices:
            logger.info(f"  {device.name} ({device.udid}) - {device.state}")

    async def drain_background_tasks(self) -> None:
        """Wait for pending diagnostic tasks (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
