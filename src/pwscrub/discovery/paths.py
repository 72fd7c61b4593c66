"""Derive artifact directories from a resolved Playwright config."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pwscrub.constants import (
    DEFAULT_HTML_REPORT_FOLDER,
    DEFAULT_OUTPUT_DIR,
    HTML_REPORTER_NAME,
    TRACE_OFF,
)
from pwscrub.errors import ConfigError
from pwscrub.schemas.enums import ArtifactKind
from pwscrub.schemas.playwright_models import PlaywrightConfig


@dataclass(frozen=True)
class ArtifactPaths:
    """Where each artifact kind lives; ``None`` means the kind is not produced."""

    html_report_dir: Path | None
    trace_dir: Path | None

    def items(self) -> Iterator[tuple[ArtifactKind, Path | None]]:
        yield ArtifactKind.HTML_REPORT, self.html_report_dir
        yield ArtifactKind.TRACE, self.trace_dir


def resolve_artifact_paths(
    config: PlaywrightConfig | Mapping[str, Any],
    config_dir: Path,
) -> ArtifactPaths:
    """Locate the HTML report and trace directories relative to ``config_dir``."""
    model = _coerce_config(config)
    html_folder = html_report_folder(model)
    trace_dir: Path | None = None
    if trace_enabled(model.use.trace):
        trace_dir = _resolve(config_dir, model.output_dir or DEFAULT_OUTPUT_DIR)
    return ArtifactPaths(
        html_report_dir=_resolve(config_dir, html_folder) if html_folder else None,
        trace_dir=trace_dir,
    )


def html_report_folder(config: PlaywrightConfig) -> str | None:
    """Return the html reporter's output folder, or ``None`` without one."""
    for entry in config.reporter:
        if isinstance(entry, str):
            if entry == HTML_REPORTER_NAME:
                return DEFAULT_HTML_REPORT_FOLDER
            continue
        if not entry or entry[0] != HTML_REPORTER_NAME:
            continue
        options = entry[1] if len(entry) > 1 else None
        if isinstance(options, Mapping):
            folder = options.get("outputFolder")
            if isinstance(folder, str) and folder.strip():
                return folder
        return DEFAULT_HTML_REPORT_FOLDER
    return None


def trace_enabled(trace: bool | str | Mapping[str, Any] | None) -> bool:
    """Traces are on for ``True``, any mode other than ``"off"``, or an options object."""
    if isinstance(trace, str):
        return bool(trace) and trace != TRACE_OFF
    if isinstance(trace, Mapping):
        return True
    return bool(trace)


def _coerce_config(config: PlaywrightConfig | Mapping[str, Any]) -> PlaywrightConfig:
    if isinstance(config, PlaywrightConfig):
        return config
    if not isinstance(config, Mapping):
        raise ConfigError(
            f"Playwright config must be a mapping, got {type(config).__name__}"
        )
    try:
        return PlaywrightConfig.model_validate(dict(config))
    except ValidationError as exc:
        raise ConfigError(f"Unsupported Playwright config shape: {exc}") from exc


def _resolve(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return (base / path).resolve()
