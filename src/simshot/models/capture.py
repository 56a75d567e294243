"""Pydantic models for screenshot capture requests and results."""

from typing import Optional

from pydantic import BaseModel, Field

from ..config import DEFAULT_MAX_WIDTH


class CaptureRequest(BaseModel):
    """Options for a single capture; every field is optional."""

    output_filename: Optional[str] = Field(
        default=None, description="Output filename (default: simulator_<timestamp>.png)"
    )
    output_directory_name: Optional[str] = Field(
        default=None, description="Subdirectory name for screenshots (default: .screenshots)"
    )
    resize: bool = Field(default=True, description="Resize the image down to max_width")
    max_width: int = Field(default=DEFAULT_MAX_WIDTH, gt=0, description="Maximum width in pixels")
    device_id: Optional[str] = Field(
        default=None, description="Simulator UDID (default: the booted device)"
    )

    model_config = {"frozen": True}


class ImageMetadata(BaseModel):
    """Properties of the saved screenshot file."""

    width: int = Field(description="Image width in pixels")
    height: int = Field(description="Image height in pixels")
    format: str = Field(description="Image format, e.g. 'png'")
    size: int = Field(description="File size in bytes")
    timestamp: str = Field(description="Time the metadata was read (ISO8601 UTC)")

    model_config = {"frozen": True}


class CaptureErrorInfo(BaseModel):
    """Structured failure details."""

    code: str = Field(description="Error code")
    command: Optional[str] = Field(default=None, description="External command, if one was run")
    stderr: Optional[str] = Field(default=None, description="Captured standard error output")

    model_config = {"frozen": True}


class CaptureResult(BaseModel):
    """Outcome of a capture.

    file_path and metadata are set only on success, error only on failure.
    """

    success: bool
    message: str
    file_path: Optional[str] = Field(default=None, serialization_alias="filePath")
    metadata: Optional[ImageMetadata] = None
    error: Optional[CaptureErrorInfo] = None

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, message: str, file_path: str, metadata: ImageMetadata) -> "CaptureResult":
        return cls(success=True, message=message, file_path=file_path, metadata=metadata)

    @classmethod
    def failure(
        cls,
        message: str,
        code: str,
        command: Optional[str] = None,
        stderr: Optional[str] = None,
    ) -> "CaptureResult":
        return cls(
            success=False,
            message=message,
            error=CaptureErrorInfo(code=code, command=command, stderr=stderr),
        )

    def to_payload(self) -> dict:
        """Serialize for CLI and MCP output (camelCase filePath, unset fields omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)
