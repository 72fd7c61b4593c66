"""Artifact path resolution and discovery tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from pwscrub.discovery import (
    ArtifactFinder,
    html_report_folder,
    resolve_artifact_paths,
    trace_enabled,
)
from pwscrub.errors import ConfigError
from pwscrub.schemas import PlaywrightConfig


def test_resolves_report_and_trace_directories(tmp_path: Path) -> None:
    """Reporter options and outputDir resolve against the config directory."""
    config = {
        "reporter": [["html", {"outputFolder": "out"}]],
        "outputDir": "results",
        "use": {"trace": "on"},
    }
    paths = resolve_artifact_paths(config, tmp_path)
    assert paths.html_report_dir == (tmp_path / "out").resolve()
    assert paths.trace_dir == (tmp_path / "results").resolve()


def test_trace_off_means_no_trace_directory(tmp_path: Path) -> None:
    """The literal "off" mode disables trace scrubbing."""
    paths = resolve_artifact_paths({"use": {"trace": "off"}}, tmp_path)
    assert paths.trace_dir is None
    assert paths.html_report_dir is None


@pytest.mark.parametrize(
    ("trace", "expected"),
    [
        (True, True),
        (False, False),
        (None, False),
        ("on", True),
        ("retain-on-failure", True),
        ("off", False),
        ("", False),
        ({"mode": "on", "snapshots": True}, True),
    ],
)
def test_trace_enabled_modes(trace: object, expected: bool) -> None:
    """Any truthy mode other than "off" enables traces."""
    assert trace_enabled(trace) is expected  # type: ignore[arg-type]


def test_trace_defaults_to_test_results(tmp_path: Path) -> None:
    """Without outputDir the Playwright default folder is used."""
    paths = resolve_artifact_paths({"use": {"trace": True}}, tmp_path)
    assert paths.trace_dir == (tmp_path / "test-results").resolve()


@pytest.mark.parametrize(
    "reporter",
    ["html", ["html"], [["list"], ["html"]], [["html", {}]], [["html", {"open": "never"}]]],
)
def test_html_reporter_defaults_folder(reporter: object) -> None:
    """Every html reporter form falls back to playwright-report."""
    config = PlaywrightConfig.model_validate({"reporter": reporter})
    assert html_report_folder(config) == "playwright-report"


def test_non_html_reporters_have_no_report_dir(tmp_path: Path) -> None:
    """A config without an html reporter skips HTML scrubbing."""
    paths = resolve_artifact_paths({"reporter": [["list"], ["json"]]}, tmp_path)
    assert paths.html_report_dir is None


def test_absolute_folders_stay_absolute(tmp_path: Path) -> None:
    """Absolute locations are not re-rooted under the config directory."""
    report_dir = tmp_path / "elsewhere" / "report"
    config = {"reporter": [["html", {"outputFolder": str(report_dir)}]]}
    paths = resolve_artifact_paths(config, tmp_path / "project")
    assert paths.html_report_dir == report_dir


def test_malformed_config_raises_config_error(tmp_path: Path) -> None:
    """Wrongly typed config values are configuration errors."""
    with pytest.raises(ConfigError):
        resolve_artifact_paths({"reporter": 42}, tmp_path)
    with pytest.raises(ConfigError):
        resolve_artifact_paths(["not", "a", "mapping"], tmp_path)  # type: ignore[arg-type]


def test_finder_is_sorted_and_recursive(tmp_path: Path) -> None:
    """Discovery walks subdirectories and returns a stable order."""
    for relative in ("b/trace.zip", "a/trace.zip", "a/nested/trace.zip", "a/notes.txt"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x")
    found = ArtifactFinder.from_globs(["**/*.zip"]).find(tmp_path)
    assert [path.relative_to(tmp_path).as_posix() for path in found] == [
        "a/nested/trace.zip",
        "a/trace.zip",
        "b/trace.zip",
    ]


def test_finder_skips_excluded_directories(tmp_path: Path) -> None:
    """Scratch and output directories are never rediscovered."""
    kept = tmp_path / "run" / "trace.zip"
    skipped = tmp_path / ".pwscrub-temp" / "trace.zip"
    for path in (kept, skipped):
        path.parent.mkdir(parents=True)
        path.write_bytes(b"x")
    finder = ArtifactFinder.from_globs(
        ["**/*.zip"], excluded_dirs=[tmp_path / ".pwscrub-temp"]
    )
    assert finder.find(tmp_path) == [kept]


def test_finder_on_missing_root_is_empty(tmp_path: Path) -> None:
    """A directory that was never created yields nothing."""
    assert ArtifactFinder.from_globs(["**/*"]).find(tmp_path / "missing") == []
