"""Tests for the typer CLI."""

import json

import pytest
from PIL import Image
from typer.testing import CliRunner

from conftest import FakeSimctl
from simshot import __version__
from simshot.cli import app

runner = CliRunner()


def _json_from(text: str) -> dict:
    return json.loads(text[text.index("{"):])


@pytest.fixture
def cli_simctl(monkeypatch, tmp_path):
    """Route the CLI's SimctlClient to a FakeSimctl."""
    for name in ("SIMSHOT_OUTPUT_DIR", "SIMSHOT_MAX_WIDTH", "SIMSHOT_SUBDIRECTORY", "SIMSHOT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)

    fake = FakeSimctl()
    monkeypatch.setattr("simshot.simulator.SimctlClient.from_config", lambda config: fake)
    return fake


def test_capture_success(cli_simctl, tmp_path):
    out_dir = tmp_path / "shots"
    result = runner.invoke(app, ["capture", "--output-dir", str(out_dir), "--output-filename", "cli.png"])

    assert result.exit_code == 0, result.output
    assert "Screenshot saved successfully" in result.output
    saved = out_dir / "cli.png"
    assert saved.exists()
    with Image.open(saved) as img:
        assert img.width == 640

    payload = _json_from(result.stdout)
    assert payload["success"] is True
    assert payload["metadata"]["width"] == 640


def test_capture_defaults_to_screenshots_subdirectory(cli_simctl, tmp_path):
    result = runner.invoke(app, ["capture", "--output-filename", "default.png"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / ".screenshots" / "default.png").exists()


def test_capture_options_map_to_request(cli_simctl, tmp_path):
    result = runner.invoke(
        app,
        [
            "capture",
            "--output-filename", "raw.png",
            "--output-directory-name", "custom",
            "--no-resize",
            "--device-id", "booted",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = _json_from(result.stdout)
    assert payload["metadata"]["width"] == 1000
    assert (tmp_path / "custom" / "raw.png").exists()
    assert cli_simctl.capture_calls == ["booted"]


def test_capture_max_width(cli_simctl, tmp_path):
    result = runner.invoke(app, ["capture", "--output-filename", "w.png", "--max-width", "320"])

    assert result.exit_code == 0, result.output
    assert _json_from(result.stdout)["metadata"]["width"] == 320


def test_capture_invalid_device_exits_nonzero(cli_simctl):
    result = runner.invoke(app, ["capture", "--device-id", "not-a-uuid"])

    assert result.exit_code == 1
    assert "Invalid device ID format" in result.output
    assert cli_simctl.capture_calls == []


def test_capture_command_failure_exits_nonzero(cli_simctl, capture_error):
    cli_simctl.capture_error = capture_error

    result = runner.invoke(app, ["capture"])

    assert result.exit_code == 1
    assert "Error capturing" in result.output
    assert '"code": "149"' in result.output


def test_capture_rejects_zero_max_width(cli_simctl):
    result = runner.invoke(app, ["capture", "--max-width", "0"])
    assert result.exit_code != 0


def test_devices_lists_table(cli_simctl):
    result = runner.invoke(app, ["devices"])

    assert result.exit_code == 0, result.output
    assert "iPhone 15" in result.output
    assert "iPad Air" in result.output


def test_devices_none_found(cli_simctl, inventory_error):
    cli_simctl.list_error = inventory_error

    result = runner.invoke(app, ["devices"])

    assert result.exit_code == 1
    assert "No simulator devices found" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_capture_unknown_log_level_fails_before_capturing(cli_simctl):
    result = runner.invoke(app, ["capture", "--log-level", "LOUD"])

    assert result.exit_code == 1
    assert "Unknown log level: LOUD" in result.output
    assert "UNEXPECTED_ERROR" in result.output
    assert cli_simctl.capture_calls == []
