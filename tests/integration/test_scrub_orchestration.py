"""Orchestrator tests over synthetic Playwright output trees."""

from __future__ import annotations

import base64
import io
import json
import logging
import zipfile
from pathlib import Path

import pytest

from pwscrub.config import ScrubberSettings
from pwscrub.discovery import StaticConfigProvider
from pwscrub.engine.orchestrator import ResultScrubber, ScrubOptions, scrub_results
from pwscrub.errors import ArtifactWriteError, ConfigError, RuleConstructionError
from pwscrub.rules import (
    RuleSet,
    ScrubRule,
    default_rules,
    json_field_rules,
    trace_rules,
)
from pwscrub.schemas.enums import ArtifactKind, ContainerFormat, OutcomeStatus

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x01\x02"
TRACE_EVENTS = "\n".join(
    [
        '{"type":"context-options","startTime":1700000000123}',
        '{"type":"action","apiName":"locator.fill",'
        '"params":{"selector":"#email","value":"jane@corp.io"}}',
        '{"type":"request","postData":{"username":"jane","password":"hunter2"}}',
    ]
)
REPORT_SOURCE = "await page.locator('#password').fill('hunter2');"


def _zip_bytes(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def _read_zip(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def _report_page(entries: dict[str, bytes]) -> bytes:
    payload = base64.b64encode(_zip_bytes(entries)).decode()
    return (
        "<!DOCTYPE html><html><head><script>\n"
        f'window.playwrightReportBase64 = "data:application/zip;base64,{payload}";'
        "</script></head><body><div id=root></div></body></html>"
    ).encode()


def _embedded_entries(page: bytes) -> dict[str, bytes]:
    marker = b"data:application/zip;base64,"
    start = page.index(marker) + len(marker)
    end = page.index(b'"', start)
    with zipfile.ZipFile(io.BytesIO(base64.b64decode(page[start:end]))) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def _build_project(root: Path) -> Path:
    config_path = root / "playwright.config.json"
    config_path.write_text(
        json.dumps(
            {
                "testDir": "./tests",
                "reporter": [["list"], ["html", {"outputFolder": "playwright-report"}]],
                "outputDir": "test-results",
                "use": {"trace": "on"},
            }
        ),
        encoding="utf-8",
    )
    report_dir = root / "playwright-report"
    (report_dir / "data").mkdir(parents=True)
    report_json = json.dumps({"files": [{"source": REPORT_SOURCE}], "title": "login"})
    (report_dir / "index.html").write_bytes(_report_page({"report.json": report_json.encode()}))
    (report_dir / "data" / "0a1b2c.zip").write_bytes(
        _zip_bytes({"test.trace": TRACE_EVENTS.encode()})
    )
    trace_dir = root / "test-results" / "login-chromium"
    trace_dir.mkdir(parents=True)
    (trace_dir / "trace.zip").write_bytes(
        _zip_bytes(
            {
                "test.trace": TRACE_EVENTS.encode(),
                "resources/page@1.png": PNG_BYTES,
            }
        )
    )
    return config_path


def _options(**kwargs: object) -> ScrubOptions:
    return ScrubOptions(rules=default_rules(), **kwargs)  # type: ignore[arg-type]


def test_scrubs_report_and_traces_in_place(tmp_path: Path) -> None:
    """Every artifact kind is rewritten with sensitive values masked."""
    config_path = _build_project(tmp_path)

    report = scrub_results(config_path, _options(), cwd=tmp_path)

    assert report.count(OutcomeStatus.CHANGED) == 3
    assert report.html_report_dir == str((tmp_path / "playwright-report").resolve())
    containers = {Path(outcome.path).name: outcome.container for outcome in report.artifacts}
    assert containers == {
        "index.html": ContainerFormat.EMBEDDED_ARCHIVE,
        "0a1b2c.zip": ContainerFormat.ARCHIVE,
        "trace.zip": ContainerFormat.ARCHIVE,
    }

    page = (tmp_path / "playwright-report" / "index.html").read_bytes()
    embedded = json.loads(_embedded_entries(page)["report.json"])
    assert embedded["files"][0]["source"] == (
        "await page.locator('#password').fill('********');"
    )
    assert embedded["title"] == "login"

    trace = _read_zip(tmp_path / "test-results" / "login-chromium" / "trace.zip")
    events = [json.loads(line) for line in trace["test.trace"].decode().splitlines()]
    assert events[0]["startTime"] == 1700000000123
    assert events[1]["params"]["value"] == "user@example.com"
    assert events[2]["postData"] == {"username": "jane", "password": "********"}
    assert trace["resources/page@1.png"] == PNG_BYTES
    assert not (tmp_path / ".pwscrub-temp").exists()


def test_trace_rules_apply_to_trace_artifacts_only(tmp_path: Path) -> None:
    """Trace field rules reach traces but not the report's bundled copies."""
    config_path = _build_project(tmp_path)

    report = scrub_results(
        config_path, _options(trace_rules=trace_rules()), cwd=tmp_path
    )

    assert report.rule_count == len(default_rules()) + len(trace_rules())
    trace = _read_zip(tmp_path / "test-results" / "login-chromium" / "trace.zip")
    trace_events = trace["test.trace"].decode().splitlines()
    assert json.loads(trace_events[1])["params"]["value"] == "********"
    bundled = _read_zip(tmp_path / "playwright-report" / "data" / "0a1b2c.zip")
    bundled_events = bundled["test.trace"].decode().splitlines()
    assert json.loads(bundled_events[1])["params"]["value"] == "user@example.com"


def test_second_run_changes_nothing(tmp_path: Path) -> None:
    """Scrubbing already-scrubbed artifacts is a no-op."""
    config_path = _build_project(tmp_path)
    scrub_results(config_path, _options(), cwd=tmp_path)
    trace_path = tmp_path / "test-results" / "login-chromium" / "trace.zip"
    first_pass = trace_path.read_bytes()

    report = scrub_results(config_path, _options(), cwd=tmp_path)

    assert report.count(OutcomeStatus.CHANGED) == 0
    assert report.count(OutcomeStatus.UNCHANGED) == 3
    assert trace_path.read_bytes() == first_pass


def test_output_dir_mirrors_and_removes_originals(tmp_path: Path) -> None:
    """Mirrored copies keep the cwd-relative layout; originals are removed."""
    config_path = _build_project(tmp_path)
    output_dir = tmp_path / "sanitized"

    report = scrub_results(config_path, _options(output_dir=output_dir), cwd=tmp_path)

    mirrored = output_dir / "test-results" / "login-chromium" / "trace.zip"
    assert mirrored.exists()
    assert not (tmp_path / "test-results" / "login-chromium" / "trace.zip").exists()
    assert str(mirrored.resolve()) in {outcome.output_path for outcome in report.artifacts}


def test_output_dir_with_preserve_keeps_originals(tmp_path: Path) -> None:
    """Preserved originals stay byte-identical."""
    config_path = _build_project(tmp_path)
    original = tmp_path / "test-results" / "login-chromium" / "trace.zip"
    before = original.read_bytes()

    scrub_results(
        config_path,
        _options(output_dir=Path("sanitized"), preserve_originals=True),
        cwd=tmp_path,
    )

    assert original.read_bytes() == before
    assert (tmp_path / "sanitized" / "playwright-report" / "index.html").exists()


def test_output_dir_receives_unchanged_traces(tmp_path: Path) -> None:
    """Traces with nothing to scrub are still moved to the output dir."""
    config_path = tmp_path / "playwright.config.json"
    config_path.write_text(
        json.dumps({"outputDir": "results", "use": {"trace": "on"}}), encoding="utf-8"
    )
    clean = tmp_path / "results" / "clean.zip"
    clean.parent.mkdir()
    clean.write_bytes(_zip_bytes({"session.json": b'{"user":"ok"}'}))
    before = clean.read_bytes()

    report = scrub_results(
        config_path,
        ScrubOptions(rules=json_field_rules(), output_dir=Path("out")),
        cwd=tmp_path,
    )

    copied = tmp_path / "out" / "results" / "clean.zip"
    assert copied.read_bytes() == before
    assert not clean.exists()
    [outcome] = report.artifacts
    assert outcome.status == OutcomeStatus.UNCHANGED
    assert outcome.output_path == str(copied.resolve())


def test_in_place_run_leaves_unchanged_traces_alone(tmp_path: Path) -> None:
    """Without an output dir an unchanged trace is not rewritten."""
    config_path = tmp_path / "playwright.config.json"
    config_path.write_text(
        json.dumps({"outputDir": "results", "use": {"trace": "on"}}), encoding="utf-8"
    )
    clean = tmp_path / "results" / "clean.zip"
    clean.parent.mkdir()
    clean.write_bytes(_zip_bytes({"session.json": b'{"user":"ok"}'}))
    mtime = clean.stat().st_mtime_ns

    report = scrub_results(
        config_path, ScrubOptions(rules=json_field_rules()), cwd=tmp_path
    )

    assert clean.stat().st_mtime_ns == mtime
    assert report.artifacts[0].output_path is None


def test_corrupt_archive_is_skipped_and_run_continues(tmp_path: Path) -> None:
    """One unreadable artifact does not stop the others."""
    config_path = _build_project(tmp_path)
    broken = tmp_path / "test-results" / "broken" / "trace.zip"
    broken.parent.mkdir()
    broken.write_bytes(b"this is not a zip archive")

    report = scrub_results(config_path, _options(), cwd=tmp_path)

    statuses = {Path(outcome.path).parent.name: outcome.status for outcome in report.artifacts}
    assert statuses["broken"] == OutcomeStatus.FAILED
    assert statuses["login-chromium"] == OutcomeStatus.CHANGED
    assert broken.read_bytes() == b"this is not a zip archive"


def test_missing_directories_are_not_errors(tmp_path: Path) -> None:
    """Configured but absent directories are skipped."""
    config = {"reporter": "html", "use": {"trace": "retain-on-failure"}}
    report = scrub_results(
        tmp_path / "playwright.config.ts",
        _options(),
        config_provider=StaticConfigProvider(config),
        cwd=tmp_path,
    )
    assert report.artifacts == []
    assert report.trace_dir == str((tmp_path / "test-results").resolve())


def test_nothing_configured_is_a_successful_empty_run(tmp_path: Path) -> None:
    """A config with neither kind configured has nothing to scrub."""
    report = scrub_results(
        tmp_path / "playwright.config.ts",
        _options(),
        config_provider=StaticConfigProvider({"use": {"trace": "off"}}),
        cwd=tmp_path,
    )
    assert report.html_report_dir is None
    assert report.trace_dir is None
    assert report.artifacts == []


def test_missing_config_aborts(tmp_path: Path) -> None:
    """A config file that cannot be loaded is fatal."""
    with pytest.raises(ConfigError):
        scrub_results(tmp_path / "playwright.config.json", _options(), cwd=tmp_path)


def test_write_failure_propagates(tmp_path: Path) -> None:
    """An unwritable output location fails the run."""
    config_path = _build_project(tmp_path)
    blocker = tmp_path / "blocked"
    blocker.write_text("a file where a directory should be", encoding="utf-8")
    with pytest.raises(ArtifactWriteError):
        scrub_results(config_path, _options(output_dir=blocker), cwd=tmp_path)


def test_empty_rules_are_rejected() -> None:
    """Options without rules cannot be constructed."""
    with pytest.raises(RuleConstructionError):
        ScrubOptions(rules=[])  # type: ignore[arg-type]


def test_text_attachments_use_flat_codec(tmp_path: Path) -> None:
    """Attachment globs route loose text files through the flat codec."""
    trace_dir = tmp_path / "test-results" / "run"
    trace_dir.mkdir(parents=True)
    (trace_dir / "stdout.txt").write_text('{"token":"abc123"}', encoding="utf-8")
    settings = ScrubberSettings.model_validate({"discovery": {"attachment_globs": ["**/*.txt"]}})

    report = scrub_results(
        tmp_path / "playwright.config.ts",
        _options(),
        settings=settings,
        config_provider=StaticConfigProvider({"use": {"trace": True}}),
        cwd=tmp_path,
    )

    assert [outcome.container for outcome in report.artifacts] == [ContainerFormat.FLAT]
    assert (trace_dir / "stdout.txt").read_text(encoding="utf-8") == '{"token":"********"}'


def test_verbose_run_logs_rule_failures_with_pattern(tmp_path: Path, caplog) -> None:  # type: ignore[no-untyped-def]
    """Skipped rules are reported with the file path and the pattern."""
    config_path = _build_project(tmp_path)
    rules = RuleSet([ScrubRule("(broken", "x"), ScrubRule("hunter2", "********")])
    scrubber = ResultScrubber(
        config_path, ScrubOptions(rules=rules, verbose=True), cwd=tmp_path
    )

    with caplog.at_level(logging.INFO, logger="pwscrub"):
        report = scrubber.scrub()

    warnings = [record.getMessage() for record in caplog.records if record.levelno == logging.WARNING]
    assert any("(broken" in message and "trace.zip" in message for message in warnings)
    assert all(outcome.rule_failures == ["(broken"] for outcome in report.artifacts)


def test_quiet_run_does_not_log(tmp_path: Path, caplog) -> None:  # type: ignore[no-untyped-def]
    """Without verbose the engine is silent."""
    config_path = _build_project(tmp_path)
    rules = RuleSet([ScrubRule("(broken", "x")])
    with caplog.at_level(logging.DEBUG, logger="pwscrub"):
        scrub_results(config_path, ScrubOptions(rules=rules), cwd=tmp_path)
    assert caplog.records == []


def test_codec_routing_by_kind_and_suffix(tmp_path: Path) -> None:
    """Report pages use the embedded codec and trace archives the archive codec."""
    scrubber = ResultScrubber(
        tmp_path / "playwright.config.ts",
        _options(),
        config_provider=StaticConfigProvider({}),
        cwd=tmp_path,
    )
    report_root = tmp_path / "playwright-report"
    trace_root = tmp_path / "test-results"
    html = scrubber.codec_for(ArtifactKind.HTML_REPORT, report_root / "index.html", report_root)
    bundled = scrubber.codec_for(
        ArtifactKind.HTML_REPORT, report_root / "data" / "a.zip", report_root
    )
    trace = scrubber.codec_for(ArtifactKind.TRACE, trace_root / "x" / "trace.zip", trace_root)
    other = scrubber.codec_for(ArtifactKind.TRACE, trace_root / "x" / "video.webm", trace_root)
    assert html is not None and html.format == ContainerFormat.EMBEDDED_ARCHIVE
    assert bundled is not None and bundled.format == ContainerFormat.ARCHIVE
    assert trace is not None and trace.format == ContainerFormat.ARCHIVE
    assert other is None
