"""Tests for output path resolution."""

from pathlib import Path

import pytest

from simshot.config import SimshotConfig
from simshot.paths import OutputPaths, sanitize_directory_name, sanitize_filename


def test_default_output_path_is_cwd_screenshots(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    paths = OutputPaths()

    assert paths.get_root_directory() == tmp_path.resolve()
    assert paths.get_output_path() == tmp_path.resolve() / ".screenshots"
    assert not paths.is_using_root_directly()


def test_resolve_without_filename_returns_directory(output_root):
    paths = OutputPaths(root_directory=output_root)
    assert paths.resolve() == output_root.resolve() / ".screenshots"
    assert paths.resolve("") == output_root.resolve() / ".screenshots"


def test_resolve_joins_filename(output_root):
    paths = OutputPaths(root_directory=output_root)
    assert paths.resolve("custom.png") == output_root.resolve() / ".screenshots" / "custom.png"


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("../../etc/passwd", "passwd"),
        ("/absolute/path/shot.png", "shot.png"),
        ("..\\..\\windows\\shot.png", "shot.png"),
        ("nested/dir/../shot.png", "shot.png"),
        ("..", "_"),
        ("foo/..", "_"),
        ("trailing/", "_"),
    ],
)
def test_resolve_strips_directories_from_filename(output_root, filename, expected):
    paths = OutputPaths(root_directory=output_root)
    resolved = paths.resolve(filename)

    assert resolved.name == expected
    assert resolved.parent == paths.get_output_path()
    assert paths.is_within_root(resolved)


@pytest.mark.parametrize(
    "name",
    ["../escape", "..", "a/../../b", "..\\..\\win", "/etc", "....//....", "x/y/z"],
)
def test_subdirectory_name_never_contains_parent_segment(output_root, name):
    paths = OutputPaths(root_directory=output_root)
    paths.set_subdirectory_name(name)
    output_dir = paths.get_output_path()

    assert ".." not in output_dir.parts
    assert output_dir.parent == output_root.resolve()
    assert paths.is_within_root(paths.resolve("shot.png"))


def test_sanitize_directory_name_rules():
    assert sanitize_directory_name("a/b\\c") == "a-b-c"
    assert sanitize_directory_name("../x") == "--x"
    # Hidden directories keep their single leading dot
    assert sanitize_directory_name(".screenshots") == ".screenshots"


def test_sanitize_filename_keeps_plain_names():
    assert sanitize_filename("shot.png") == "shot.png"
    assert sanitize_filename(".hidden.png") == ".hidden.png"


def test_set_root_directory_resolves_and_toggles_direct_use(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    paths = OutputPaths()

    paths.set_root_directory("shots", use_directly=True)
    assert paths.get_root_directory() == (tmp_path / "shots").resolve()
    assert paths.is_using_root_directly()
    assert paths.get_output_path() == (tmp_path / "shots").resolve()
    assert paths.resolve("a.png") == (tmp_path / "shots").resolve() / "a.png"

    paths.set_root_directory(tmp_path)
    assert not paths.is_using_root_directly()
    assert paths.get_output_path() == tmp_path.resolve() / ".screenshots"


def test_for_request_resets_then_overrides_without_mutating(output_root):
    paths = OutputPaths(root_directory=output_root)
    paths.set_subdirectory_name("left-over")

    custom = paths.for_request("custom-dir")
    default = paths.for_request()

    assert custom.get_output_path() == output_root.resolve() / "custom-dir"
    assert default.get_output_path() == output_root.resolve() / ".screenshots"
    # The shared instance keeps its own state
    assert paths.get_output_path() == output_root.resolve() / "left-over"


def test_for_request_keeps_direct_root(output_root):
    paths = OutputPaths(root_directory=output_root, use_root_directly=True)
    assert paths.for_request("ignored").resolve("a.png") == output_root.resolve() / "a.png"


def test_from_config(tmp_path):
    config = SimshotConfig(output_root=tmp_path, use_root_directly=False, default_subdirectory="caps")
    paths = OutputPaths.from_config(config)
    assert paths.get_output_path() == tmp_path.resolve() / "caps"


def test_is_within_root_rejects_outside_paths(output_root):
    paths = OutputPaths(root_directory=output_root)
    assert not paths.is_within_root(Path("/somewhere/else.png"))
    assert not paths.is_within_root(output_root / ".." / "escape.png")


def test_nul_bytes_are_dropped(output_root):
    assert sanitize_directory_name("a\x00b") == "ab"
    assert sanitize_filename("x\x00.png") == "x.png"
    assert sanitize_filename("\x00") == "_"

    paths = OutputPaths(root_directory=output_root).for_request("sub\x00dir")
    path = paths.resolve("shot\x00.png")
    assert "\x00" not in str(path)
    assert path == output_root.resolve() / "subdir" / "shot.png"
