"""Typer-based CLI for simshot."""

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import SimshotConfig
from .devices import DeviceValidator
from .logging_setup import configure_logging
from .models.capture import CaptureRequest, CaptureResult
from .screenshot import ScreenshotService
from .simulator import SimctlClient

app = typer.Typer(
    name="simshot",
    help="simshot - iOS Simulator screenshot capture",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def _report(result: CaptureResult) -> None:
    """Print the result: stdout on success, stderr on failure."""
    if result.success:
        console.print(
            f"[green]Screenshot saved successfully:[/green] {escape(result.file_path or '')}",
            soft_wrap=True,
        )
        typer.echo(result.to_json())
    else:
        err_console.print(f"[red]Error: {escape(result.message)}[/red]", soft_wrap=True)
        typer.echo(result.to_json(), err=True)


async def _capture_and_report(service: ScreenshotService, request: CaptureRequest) -> CaptureResult:
    result = await service.capture(request)
    _report(result)
    # Diagnostic device listing runs after the result is already printed
    await service.drain_background_tasks()
    return result


@app.command()
def capture(
    output_filename: str = typer.Option(
        None,
        "--output-filename",
        help="Output filename (default: simulator_<timestamp>.png)",
    ),
    output_directory_name: str = typer.Option(
        None,
        "--output-directory-name",
        help="Subdirectory name (default: .screenshots)",
    ),
    resize: bool = typer.Option(
        True,
        "--resize/--no-resize",
        help="Whether to resize the image (default: resize)",
    ),
    max_width: int = typer.Option(
        None,
        "--max-width",
        min=1,
        help="Maximum width for resizing in pixels (default: 640)",
    ),
    device_id: str = typer.Option(
        None,
        "--device-id",
        help="Simulator device ID (default: booted)",
    ),
    output_dir: str = typer.Option(
        None,
        "--output-dir",
        help="Root output directory (default: SIMSHOT_OUTPUT_DIR env or current directory)",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr logging (default: SIMSHOT_LOG_LEVEL env or WARNING)",
    ),
):
    """Capture a screenshot from the iOS Simulator.

    Prints the result as JSON. Exits 0 on success and 1 on failure.
    """
    try:
        configure_logging(log_level)
        config = SimshotConfig.from_env(cli_output_dir=output_dir)
        service = ScreenshotService.from_config(config)
        request = CaptureRequest(
            output_filename=output_filename,
            output_directory_name=output_directory_name,
            resize=resize,
            max_width=max_width or config.default_max_width,
            device_id=device_id,
        )
        result = asyncio.run(_capture_and_report(service, request))
    except Exception as e:
        result = CaptureResult.failure(f"Error: {e}", code="UNEXPECTED_ERROR")
        _report(result)

    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def devices(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr logging (default: SIMSHOT_LOG_LEVEL env or WARNING)",
    ),
):
    """List available simulator devices."""
    try:
        configure_logging(log_level)
        config = SimshotConfig.from_env()
    except ValueError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    validator = DeviceValidator(SimctlClient.from_config(config))
    available = asyncio.run(validator.list_available_devices())

    if not available:
        err_console.print("[yellow]No simulator devices found (is Xcode installed?)[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title="Simulator devices")
    table.add_column("Name")
    table.add_column("UDID", no_wrap=True)
    table.add_column("State")
    table.add_column("Runtime")
    for device in available:
        runtime = (device.runtime or "").rsplit(".", 1)[-1]
        state_style = "green" if device.state == "Booted" else "dim"
        table.add_row(device.name, device.udid, f"[{state_style}]{device.state}[/{state_style}]", runtime)
    console.print(table)


@app.command()
def serve(
    output_dir: str = typer.Option(
        None,
        "--output-dir",
        help="Root output directory (default: SIMSHOT_OUTPUT_DIR env or current directory)",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level for stderr logging (default: SIMSHOT_LOG_LEVEL env or WARNING)",
    ),
):
    """Run the MCP server on stdio."""
    from .mcp_server import run_server

    run_server(output_dir=output_dir, log_level=log_level)


@app.command()
def version():
    """Show simshot version."""
    from . import __version__
    console.print(f"simshot v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
