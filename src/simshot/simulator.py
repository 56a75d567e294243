"""Async wrapper around `xcrun simctl`.

Commands run with asyncio.create_subprocess_exec (no shell), so device ids
are passed as single argv entries.
"""

import asyncio
import errno
import json
import logging
from typing import Optional

from .config import (
    DEFAULT_MAX_BUFFER_SIZE,
    SimshotConfig,
    build_capture_command,
    build_list_devices_command,
)
from .errors import CaptureCommandError, InventoryQueryError, SimshotError

logger = logging.getLogger(__name__)

MAX_BUFFER_CODE = "ERR_CHILD_PROCESS_STDIO_MAXBUFFER"
_CHUNK_SIZE = 64 * 1024


class OutputLimitExceeded(Exception):
    pass


async def _read_limited(stream: asyncio.StreamReader, limit: int, name: str = "stdout") -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return b"".join(chunks)
        total += len(chunk)
        if total > limit:
            raise OutputLimitExceeded(f"{name} maxBuffer length exceeded ({limit} bytes)")
        chunks.append(chunk)


async def run_command(
    command: list[str],
    max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE,
    error_cls: type[SimshotError] = SimshotError,
) -> bytes:
    """Run a command and return its stdout.

    Args:
        command: Argument vector
        max_buffer_size: Largest stdout or stderr accepted before the process
            is killed
        error_cls: SimshotError subclass raised on failure

    Returns:
        Raw stdout bytes

    Raises:
        error_cls: If the executable is missing, exits non-zero, or writes
            more than max_buffer_size bytes to either stream
    """
    command_str = " ".join(command)
    logger.debug(f"Running: {command_str}")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        code = errno.errorcode.get(e.errno, "UNKNOWN_ERROR") if e.errno else "UNKNOWN_ERROR"
        raise error_cls(
            f"Command failed: {command_str}\n{e.strerror or e}",
            code=code,
            command=command_str,
        ) from e

    try:
        stdout, stderr = await asyncio.gather(
            _read_limited(process.stdout, max_buffer_size),
            _read_limited(process.stderr, max_buffer_size, "stderr"),
        )
    except OutputLimitExceeded as e:
        try:
            process.kill()
        except ProcessLookupError:
            pass  # already exited
        await process.wait()
        raise error_cls(str(e), code=MAX_BUFFER_CODE, command=command_str) from e

    returncode = await process.wait()
    stderr_text = stderr.decode("utf-8", errors="replace")

    if returncode != 0:
        raise error_cls(
            f"Command failed: {command_str}\n{stderr_text.strip()}".rstrip(),
            code=str(returncode),
            command=command_str,
            stderr=stderr_text,
        )

    return stdout


class SimctlClient:
    """Runs the simctl subcommands simshot needs."""

    def __init__(self, simctl_path: str = "xcrun", max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE):
        self.simctl_path = simctl_path
        self.max_buffer_size = max_buffer_size

    @classmethod
    def from_config(cls, config: SimshotConfig) -> "SimctlClient":
        return cls(simctl_path=config.simctl_path, max_buffer_size=config.max_buffer_size)

    async def list_devices(self) -> dict:
        """Fetch the device inventory, grouped by runtime.

        Returns:
            Parsed `simctl list devices --json` output

        Raises:
            InventoryQueryError: If simctl fails or prints malformed JSON
        """
        command = build_list_devices_command(self.simctl_path)
        stdout = await run_command(command, self.max_buffer_size, InventoryQueryError)
        try:
            listing = json.loads(stdout)
        except ValueError as e:
            raise InventoryQueryError(
                f"Malformed device list: {e}",
                code="INVALID_JSON",
                command=" ".join(command),
            ) from e
        if not isinstance(listing, dict) or not isinstance(listing.get("devices"), dict):
            raise InventoryQueryError(
                "Malformed device list: missing 'devices' mapping",
                code="INVALID_JSON",
                command=" ".join(command),
            )
        return listing

    async def capture_png(self, device_id: Optional[str] = None) -> bytes:
        """Capture a PNG screenshot.

        Args:
            device_id: Simulator UDID, or None for the booted device

        Returns:
            PNG bytes

        Raises:
            CaptureCommandError: If the screenshot command fails
        """
        command = build_capture_command(device_id, self.simctl_path)
        return await run_command(command, self.max_buffer_size, CaptureCommandError)
