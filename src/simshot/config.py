"""Configuration management for simshot."""

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

BOOTED_DEVICE = "booted"

DEFAULT_SUBDIRECTORY = ".screenshots"
DEFAULT_MAX_WIDTH = 640
DEFAULT_MAX_BUFFER_SIZE = 50 * 1024 * 1024  # 50MB

_SHELL_METACHARACTERS = re.compile(r"[;&|`$(){}\[\]<>\"'\\]")


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .simshot/config.toml if it exists."""
    config_file = repo_root / ".simshot" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"Invalid config: {name} must be an int, got {value!r}") from None


def escape_shell_arg(value: str) -> str:
    """Remove shell special characters from a command argument."""
    return _SHELL_METACHARACTERS.sub("", value)


def build_capture_command(device_id: Optional[str] = None, simctl_path: str = "xcrun") -> list[str]:
    """Build the simctl screenshot command that writes PNG bytes to stdout.

    Args:
        device_id: Simulator UDID; defaults to the booted device
        simctl_path: Executable used to reach simctl

    Returns:
        Argument vector for the capture command
    """
    safe_id = escape_shell_arg(device_id or BOOTED_DEVICE) or BOOTED_DEVICE
    return [simctl_path, "simctl", "io", safe_id, "screenshot", "--type=png", "-"]


def build_list_devices_command(simctl_path: str = "xcrun") -> list[str]:
    """Build the simctl command that prints the device inventory as JSON."""
    return [simctl_path, "simctl", "list", "devices", "--json"]


class SimshotConfig(BaseModel):
    """Configuration for screenshot capture and output placement."""

    output_root: Path = Field(default_factory=Path.cwd)
    use_root_directly: bool = Field(default=False)
    default_subdirectory: str = Field(default=DEFAULT_SUBDIRECTORY)
    default_max_width: int = Field(default=DEFAULT_MAX_WIDTH, gt=0)
    max_buffer_size: int = Field(default=DEFAULT_MAX_BUFFER_SIZE, gt=0)
    simctl_path: str = Field(default="xcrun")
    filename_prefix: str = Field(default="simulator_")

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, cli_output_dir: Optional[str] = None) -> "SimshotConfig":
        """Load configuration from CLI overrides, environment and repo config.

        Output root precedence:

        1. CLI --output-dir option (if provided)
        2. SIMSHOT_OUTPUT_DIR environment variable
        3. output_dir in repo-local .simshot/config.toml (walk upward from CWD)
        4. Current working directory, with screenshots in the default subdirectory

        An explicitly configured output root (1-3) is used directly, without
        appending the screenshot subdirectory.

        Args:
            cli_output_dir: Output root from CLI --output-dir option

        Raises:
            ValueError: If a numeric environment variable is not an integer
        """
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd())) or {}

        output_dir = cli_output_dir or os.environ.get("SIMSHOT_OUTPUT_DIR")
        if not output_dir and isinstance(repo_config.get("output_dir"), str):
            output_dir = repo_config["output_dir"]

        if output_dir:
            output_root = Path(output_dir).expanduser().resolve()
            use_root_directly = _env_bool("SIMSHOT_USE_ROOT_DIRECTLY", True)
        else:
            output_root = Path.cwd()
            use_root_directly = False

        subdirectory = os.environ.get("SIMSHOT_SUBDIRECTORY") or repo_config.get("subdirectory")
        if not isinstance(subdirectory, str) or not subdirectory:
            subdirectory = DEFAULT_SUBDIRECTORY

        return cls(
            output_root=output_root,
            use_root_directly=use_root_directly,
            default_subdirectory=subdirectory,
            default_max_width=_env_int("SIMSHOT_MAX_WIDTH", DEFAULT_MAX_WIDTH),
            max_buffer_size=_env_int("SIMSHOT_MAX_BUFFER_BYTES", DEFAULT_MAX_BUFFER_SIZE),
            simctl_path=os.environ.get("SIMSHOT_XCRUN", "xcrun"),
        )
