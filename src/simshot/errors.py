"""Exception types for simshot.

Every error carries the fields a failed CaptureResult reports: an error code,
the external command that was run (if any) and its captured stderr.
"""


class SimshotError(Exception):
    """Base class for simshot failures."""

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        command: str | None = None,
        stderr: str | None = None,
    ):
        super().__init__(message)
        self.code = code or self.default_code
        self.command = command
        self.stderr = stderr


class InventoryQueryError(SimshotError):
    """The simulator device listing could not be fetched or parsed."""

    default_code = "INVENTORY_QUERY_FAILED"


class CaptureCommandError(SimshotError):
    """The screenshot command exited abnormally or produced unusable output."""


class InvalidDeviceIdError(SimshotError):
    """A device id failed format or inventory validation."""

    default_code = "INVALID_DEVICE_ID"


class PersistError(SimshotError):
    """The captured image could not be written to disk."""


class ImageProcessingError(SimshotError):
    """Pillow could not read or resize an image."""

    default_code = "IMAGE_PROCESSING_FAILED"
