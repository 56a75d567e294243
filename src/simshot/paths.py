"""Output directory management for screenshots."""

import os
import re
from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_SUBDIRECTORY, SimshotConfig

_SEPARATORS = re.compile(r"[/\\]")


def sanitize_directory_name(name: str) -> str:
    """Make a subdirectory name safe to join onto the output root.

    Path separators become '-', every '..' is replaced with '-' and NUL bytes
    are dropped. A single leading dot (hidden directory) is kept.
    """
    sanitized = _SEPARATORS.sub("-", name.replace("\x00", ""))
    return sanitized.replace("..", "-")


def sanitize_filename(filename: str) -> str:
    """Reduce a filename to its final path segment, without NUL bytes."""
    basename = _SEPARATORS.split(filename.replace("\x00", ""))[-1]
    if basename in ("", ".", ".."):
        return "_"
    return basename


class OutputPaths:
    """Resolves where screenshots are written.

    The output directory is either the root directory itself or
    root / subdirectory. Inputs are sanitized rather than rejected, so a path
    inside the output directory is always returned. No filesystem I/O.
    """

    def __init__(
        self,
        subdirectory_name: str = DEFAULT_SUBDIRECTORY,
        root_directory: Optional[Union[str, Path]] = None,
        use_root_directly: bool = False,
    ):
        """Initialize output paths.

        Args:
            subdirectory_name: Subdirectory for screenshots (default: .screenshots)
            root_directory: Root directory (default: current working directory)
            use_root_directly: Write into the root without the subdirectory
        """
        self.default_subdirectory_name = sanitize_directory_name(subdirectory_name)
        self.subdirectory_name = self.default_subdirectory_name
        self.root_directory = Path(root_directory).resolve() if root_directory else Path.cwd()
        self.use_root_directly = use_root_directly

    @classmethod
    def from_config(cls, config: SimshotConfig) -> "OutputPaths":
        """Create OutputPaths from a SimshotConfig."""
        return cls(
            subdirectory_name=config.default_subdirectory,
            root_directory=config.output_root,
            use_root_directly=config.use_root_directly,
        )

    def for_request(self, subdirectory_name: Optional[str] = None) -> "OutputPaths":
        """Copy of these paths for one capture.

        The copy starts from the default subdirectory and applies
        subdirectory_name if given; this instance is left unchanged.
        """
        paths = OutputPaths(
            subdirectory_name=self.default_subdirectory_name,
            root_directory=self.root_directory,
            use_root_directly=self.use_root_directly,
        )
        if subdirectory_name:
            paths.set_subdirectory_name(subdirectory_name)
        return paths

    def get_output_path(self) -> Path:
        if self.use_root_directly:
            return self.root_directory
        return self.root_directory / self.subdirectory_name

    def resolve(self, filename: Optional[str] = None) -> Path:
        """Resolve the output directory, or a file inside it.

        Args:
            filename: Optional filename; only its final segment is used

        Returns:
            Absolute path of the output directory or of the file
        """
        output_dir = self.get_output_path()
        if not filename:
            return output_dir
        return output_dir / sanitize_filename(filename)

    def set_subdirectory_name(self, name: str) -> None:
        self.subdirectory_name = sanitize_directory_name(name)

    def set_root_directory(self, directory: Union[str, Path], use_directly: bool = False) -> None:
        self.root_directory = Path(directory).resolve()
        self.use_root_directly = use_directly

    def get_root_directory(self) -> Path:
        return self.root_directory

    def is_using_root_directly(self) -> bool:
        return self.use_root_directly

    def is_within_root(self, path: Union[str, Path]) -> bool:
        """Check that path stays inside the root directory tree."""
        root = os.path.normpath(str(self.root_directory))
        candidate = os.path.normpath(str(path))
        return os.path.commonpath([root, candidate]) == root
