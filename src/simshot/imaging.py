"""Image resizing and metadata via Pillow.

Resize and metadata failures do not abort a capture, so both operations
return an outcome that records the error and the fallback that was used.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from PIL import Image, UnidentifiedImageError

from .errors import ImageProcessingError
from .models.capture import ImageMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResizeOutcome:
    status: Literal["resized", "skipped", "failed"]
    original_width: Optional[int] = None
    width: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class MetadataOutcome:
    metadata: ImageMetadata
    error: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def read_image_size(path: Path) -> tuple[int, int, str]:
    """Read (width, height, format) from an image file.

    Raises:
        ImageProcessingError: If the file is missing or not an image
    """
    try:
        with Image.open(path) as img:
            return img.width, img.height, (img.format or "unknown").lower()
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ImageProcessingError(f"Cannot read image {path}: {e}") from e


def resize_to_max_width(path: Path, max_width: int) -> ResizeOutcome:
    """Shrink an image in place so its width is at most max_width.

    Height scales proportionally. Images already narrow enough are left
    untouched; images are never enlarged. On failure the original file is
    kept as it was.
    """
    tmp_path = path.with_name(path.name + ".resized")
    try:
        with Image.open(path) as img:
            original_width = img.width
            if original_width <= max_width:
                return ResizeOutcome(status="skipped", original_width=original_width, width=original_width)

            new_height = max(1, round(img.height * max_width / original_width))
            resized = img.resize((max_width, new_height), Image.Resampling.LANCZOS)
            resized.save(tmp_path, format=img.format or "PNG")

        os.replace(tmp_path, path)
        return ResizeOutcome(status="resized", original_width=original_width, width=max_width)

    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        logger.warning(f"Error resizing image {path}: {e}")
        tmp_path.unlink(missing_ok=True)
        return ResizeOutcome(status="failed", error=str(e))


def read_metadata(path: Path) -> MetadataOutcome:
    """Read final image metadata, substituting zero/'unknown' on failure."""
    try:
        width, height, fmt = read_image_size(path)
        size = path.stat().st_size
    except (ImageProcessingError, OSError) as e:
        logger.warning(f"Error getting image metadata: {e}")
        return MetadataOutcome(
            metadata=ImageMetadata(width=0, height=0, format="unknown", size=0, timestamp=_now_iso()),
            error=str(e),
        )

    return MetadataOutcome(
        metadata=ImageMetadata(width=width, height=height, format=fmt, size=size, timestamp=_now_iso())
    )
