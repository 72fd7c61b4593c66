"""Run orchestration: locate artifacts, scrub each one, write the results."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from pathspec import GitIgnoreSpec

from pwscrub.config.models import ScrubberSettings
from pwscrub.containers.codecs import (
    ArchiveCodec,
    ContainerCodec,
    EmbeddedArchiveCodec,
    FlatCodec,
    ScrubbedPayload,
)
from pwscrub.discovery.finder import ArtifactFinder
from pwscrub.discovery.paths import ArtifactPaths, resolve_artifact_paths
from pwscrub.discovery.providers import ConfigProvider, DefaultConfigProvider
from pwscrub.engine.transformer import ContentTransformer
from pwscrub.engine.writer import ArtifactWriter
from pwscrub.errors import ArtifactAccessError
from pwscrub.rules.model import RuleSet
from pwscrub.schemas.enums import ArtifactKind, OutcomeStatus
from pwscrub.schemas.report_models import ArtifactOutcome, ScrubReport

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrubOptions:
    """Rules and output policy for one run."""

    rules: RuleSet
    output_dir: Path | None = None
    preserve_originals: bool = False
    verbose: bool = False
    trace_rules: RuleSet | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", RuleSet(self.rules))
        if self.trace_rules is not None:
            object.__setattr__(self, "trace_rules", RuleSet(self.trace_rules))

    @property
    def rule_count(self) -> int:
        return len(self.rules) + len(self.trace_rules or ())


class ResultScrubber:
    """Scrub every artifact a Playwright config produces."""

    def __init__(
        self,
        config_path: Path,
        options: ScrubOptions,
        *,
        settings: ScrubberSettings | None = None,
        config_provider: ConfigProvider | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.config_path = config_path
        self.options = options
        self.settings = settings or ScrubberSettings()
        self.config_provider = config_provider or DefaultConfigProvider()
        self.cwd = (cwd or Path.cwd()).resolve()
        self.transformer = ContentTransformer(options.rules)
        self.trace_transformer = (
            ContentTransformer(options.rules + options.trace_rules)
            if options.trace_rules is not None
            else self.transformer
        )
        discovery = self.settings.discovery
        self.scratch_root = self._absolute(discovery.scratch_dir)
        self.archive_codec = ArchiveCodec(
            discovery.text_extensions, scratch_root=self.scratch_root
        )
        self.embedded_codec = EmbeddedArchiveCodec(self.archive_codec)
        self.flat_codec = FlatCodec()
        self.writer = ArtifactWriter(
            cwd=self.cwd,
            output_dir=(
                self._absolute(options.output_dir) if options.output_dir else None
            ),
            preserve_originals=options.preserve_originals,
        )
        self._attachment_spec = GitIgnoreSpec.from_lines(discovery.attachment_globs)

    def scrub(self) -> ScrubReport:
        """Process every discovered artifact sequentially and report outcomes.

        Raises ``ConfigError`` when the config cannot be loaded and
        ``ArtifactWriteError`` when a scrubbed artifact cannot be written.
        """
        config_path = self._absolute(self.config_path)
        config = self.config_provider.load(config_path)
        paths = resolve_artifact_paths(config, config_path.parent)
        self._log("Resolved artifact paths: html=%s trace=%s", *_path_labels(paths))

        outcomes: list[ArtifactOutcome] = []
        for kind, directory in paths.items():
            if directory is None:
                self._log("No %s configured, skipping", kind.value)
                continue
            if not directory.is_dir():
                self._log("%s directory %s does not exist, skipping", kind.value, directory)
                continue
            files = self._finder_for(kind).find(directory)
            self._log("Found %d %s file(s) in %s", len(files), kind.value, directory)
            for path in files:
                outcomes.append(self._scrub_artifact(kind, path, directory))

        report = ScrubReport(
            config_path=str(config_path),
            html_report_dir=_optional_str(paths.html_report_dir),
            trace_dir=_optional_str(paths.trace_dir),
            rule_count=self.options.rule_count,
            artifacts=outcomes,
        )
        self._log(
            "Scrub finished: %d changed, %d unchanged, %d failed",
            report.count(OutcomeStatus.CHANGED),
            report.count(OutcomeStatus.UNCHANGED),
            report.count(OutcomeStatus.FAILED),
        )
        return report

    def codec_for(self, kind: ArtifactKind, path: Path, root: Path) -> ContainerCodec | None:
        """Pick the codec for a discovered file; ``None`` means the file is skipped."""
        suffix = path.suffix.lower()
        if kind == ArtifactKind.HTML_REPORT:
            if suffix in {".html", ".htm", ".js"}:
                return self.embedded_codec
            if suffix == ".zip":
                return self.archive_codec
            return None
        if suffix == ".zip":
            return self.archive_codec
        relative = PurePosixPath(path.relative_to(root).as_posix())
        if self._attachment_spec.match_file(str(relative)):
            return self.flat_codec
        return None

    def _scrub_artifact(self, kind: ArtifactKind, path: Path, root: Path) -> ArtifactOutcome:
        codec = self.codec_for(kind, path, root)
        if codec is None:
            self._log("Skipping %s: no codec for this file type", path)
            return _outcome(path, kind, None, OutcomeStatus.SKIPPED)
        try:
            payload = codec.scrub_file(path, self._transformer_for(kind))
        except ArtifactAccessError as exc:
            self._warn("Skipping %s: %s", path, exc.reason)
            return _outcome(path, kind, codec, OutcomeStatus.FAILED, message=exc.reason)

        self._report_rule_failures(path, payload)
        rule_failures = list(dict.fromkeys(failure.pattern for failure in payload.failures))
        if payload.message:
            self._log("%s: %s", path, payload.message)
        if not payload.changed or payload.data is None:
            self._log("No sensitive data found in %s", path)
            mirrored = None
            if kind == ArtifactKind.TRACE:
                # traces always land in the output directory, scrubbed or not
                try:
                    mirrored = self.writer.mirror(path)
                except ArtifactAccessError as exc:
                    self._warn("Could not copy %s: %s", path, exc.reason)
                    return _outcome(
                        path, kind, codec, OutcomeStatus.FAILED, message=exc.reason
                    )
            return _outcome(
                path,
                kind,
                codec,
                OutcomeStatus.UNCHANGED,
                output_path=mirrored,
                message=payload.message,
                rule_failures=rule_failures,
            )

        written = self.writer.write(path, payload.data)
        self._log("Scrubbed %s -> %s", path, written)
        return _outcome(
            path,
            kind,
            codec,
            OutcomeStatus.CHANGED,
            output_path=written,
            message=_entries_message(payload.scrubbed_entries),
            rule_failures=rule_failures,
        )

    def _transformer_for(self, kind: ArtifactKind) -> ContentTransformer:
        if kind == ArtifactKind.TRACE:
            return self.trace_transformer
        return self.transformer

    def _finder_for(self, kind: ArtifactKind) -> ArtifactFinder:
        discovery = self.settings.discovery
        globs: Iterable[str]
        if kind == ArtifactKind.HTML_REPORT:
            globs = discovery.html_report_globs
        else:
            globs = [*discovery.trace_globs, *discovery.attachment_globs]
        excluded = [self.scratch_root]
        if self.writer.output_dir is not None:
            excluded.append(self.writer.output_dir)
        return ArtifactFinder.from_globs(globs, excluded_dirs=excluded)

    def _report_rule_failures(self, path: Path, payload: ScrubbedPayload) -> None:
        reported = {failure.pattern: failure for failure in payload.failures}
        for failure in reported.values():
            self._warn(
                "Rule %s skipped while scrubbing %s: %s",
                failure.pattern,
                path,
                failure.reason,
            )

    def _absolute(self, path: Path) -> Path:
        expanded = path.expanduser()
        if expanded.is_absolute():
            return expanded
        return self.cwd / expanded

    def _log(self, message: str, *args: object) -> None:
        if self.options.verbose:
            LOGGER.info(message, *args)

    def _warn(self, message: str, *args: object) -> None:
        if self.options.verbose:
            LOGGER.warning(message, *args)


def scrub_results(
    config_path: Path,
    options: ScrubOptions,
    *,
    settings: ScrubberSettings | None = None,
    config_provider: ConfigProvider | None = None,
    cwd: Path | None = None,
) -> ScrubReport:
    """Scrub the artifacts produced by ``config_path`` in one call."""
    return ResultScrubber(
        config_path,
        options,
        settings=settings,
        config_provider=config_provider,
        cwd=cwd,
    ).scrub()


def _outcome(
    path: Path,
    kind: ArtifactKind,
    codec: ContainerCodec | None,
    status: OutcomeStatus,
    *,
    output_path: Path | None = None,
    message: str | None = None,
    rule_failures: list[str] | None = None,
) -> ArtifactOutcome:
    return ArtifactOutcome(
        path=str(path),
        kind=kind,
        container=codec.format if codec is not None else None,
        status=status,
        output_path=str(output_path) if output_path else None,
        message=message,
        rule_failures=rule_failures or [],
    )


def _entries_message(entries: tuple[str, ...]) -> str | None:
    if not entries:
        return None
    return f"scrubbed entries: {', '.join(entries)}"


def _optional_str(path: Path | None) -> str | None:
    return str(path) if path is not None else None


def _path_labels(paths: ArtifactPaths) -> tuple[str, str]:
    return (
        _optional_str(paths.html_report_dir) or "-",
        _optional_str(paths.trace_dir) or "-",
    )
