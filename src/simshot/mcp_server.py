"""MCP server exposing the get_screenshot tool over stdio."""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any, Optional

import typer
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field, ValidationError

from . import __version__
from .config import DEFAULT_SUBDIRECTORY, SimshotConfig
from .logging_setup import configure_logging
from .models.capture import CaptureRequest, CaptureResult
from .screenshot import ScreenshotService

logger = logging.getLogger(__name__)

TOOL_NAME = "get_screenshot"
PACKAGE_NAME = "simshot"


def package_info() -> tuple[str, str]:
    """Server name and version from installed package metadata."""
    try:
        return PACKAGE_NAME, version(PACKAGE_NAME)
    except PackageNotFoundError:
        return PACKAGE_NAME, __version__


async def handle_screenshot_request(service: ScreenshotService, arguments: dict[str, Any]) -> CaptureResult:
    """Map snake_case tool arguments onto a capture and run it.

    Unset arguments fall back to the service defaults. Anything that escapes
    the pipeline is reported as an UNEXPECTED_ERROR result.
    """
    try:
        options = {key: value for key, value in arguments.items() if value is not None}
        options.setdefault("max_width", service.config.default_max_width)
        request = CaptureRequest(**options)
        return await service.capture(request)
    except ValidationError as e:
        return CaptureResult.failure(f"Error: invalid arguments: {e}", code="INVALID_ARGUMENTS")
    except Exception as e:
        logger.exception("Unexpected error while capturing screenshot")
        return CaptureResult.failure(f"Error: {e}", code="UNEXPECTED_ERROR")


def create_server(service: ScreenshotService) -> FastMCP:
    """Build the FastMCP server with its single screenshot tool."""
    name, server_version = package_info()
    mcp = FastMCP(name, version=server_version)
    default_max_width = service.config.default_max_width

    @mcp.tool(name=TOOL_NAME, description="Capture a screenshot from iOS Simulator")
    async def get_screenshot(
        output_filename: Annotated[
            Optional[str],
            Field(description="Output filename (if not specified, timestamp.png will be used)"),
        ] = None,
        output_directory_name: Annotated[
            Optional[str],
            Field(
                description=(
                    "Subdirectory name for screenshots "
                    f"(if not specified, {DEFAULT_SUBDIRECTORY} will be used)"
                )
            ),
        ] = None,
        resize: Annotated[
            bool, Field(description="Whether to resize the image to approximately VGA size")
        ] = True,
        max_width: Annotated[
            int, Field(gt=0, description="Maximum width for resizing (pixels)")
        ] = default_max_width,
        device_id: Annotated[
            Optional[str],
            Field(description="Specify a simulator device (if not specified, the booted device will be used)"),
        ] = None,
    ) -> str:
        result = await handle_screenshot_request(
            service,
            {
                "output_filename": output_filename,
                "output_directory_name": output_directory_name,
                "resize": resize,
                "max_width": max_width,
                "device_id": device_id,
            },
        )
        if not result.success:
            raise ToolError(result.to_json())
        return result.to_json()

    return mcp


def run_server(output_dir: Optional[str] = None, log_level: Optional[str] = None) -> None:
    """Serve get_screenshot on stdio until the client disconnects."""
    configure_logging(log_level)
    config = SimshotConfig.from_env(cli_output_dir=output_dir)
    service = ScreenshotService.from_config(config)
    mcp = create_server(service)
    logger.info(f"MCP iOS Simulator Screenshot server running on stdio (output: {config.output_root})")
    mcp.run(transport="stdio")


def _main(
    output_dir: str = typer.Option(
        None,
        "--output-dir",
        help="Root output directory (default: SIMSHOT_OUTPUT_DIR env or ./.screenshots)",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr logging (default: SIMSHOT_LOG_LEVEL env or WARNING)",
    ),
):
    """Run the simshot MCP server on stdio."""
    run_server(output_dir=output_dir, log_level=log_level)


def main():
    """Entry point for simshot-mcp."""
    typer.run(_main)


if __name__ == "__main__":
    main()
