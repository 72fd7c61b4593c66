"""Decode artifacts into text payloads and rebuild them after scrubbing.

Three container shapes are handled:

* flat files, where the whole file is one UTF-8 payload;
* zip archives (Playwright traces), whose text entries are scrubbed while
  binary entries such as screenshots pass through untouched;
* HTML report pages that embed the whole report as a base64 zip assigned to
  ``window.playwrightReportBase64``.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
import time
import zipfile
import zlib
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Protocol

from pwscrub.constants import EMBEDDED_REPORT_GLOBAL, EMBEDDED_REPORT_PREFIX
from pwscrub.containers.scratch import scratch_area
from pwscrub.engine.transformer import ContentTransformer
from pwscrub.errors import ArtifactAccessError, RuleApplicationError
from pwscrub.schemas.enums import ContainerFormat

_ARCHIVE_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    ValueError,
)

ASSIGNMENT_MARKER = re.compile(
    rb"("
    + re.escape(EMBEDDED_REPORT_GLOBAL.encode("ascii"))
    + rb"\s*=\s*[\"']"
    + re.escape(EMBEDDED_REPORT_PREFIX.encode("ascii"))
    + rb")([^\"']+)([\"'];?)"
)
SCRIPT_MARKER = re.compile(
    rb"(<script\b[^>]*\bid=[\"']playwrightReportBase64[\"'][^>]*>\s*"
    + re.escape(EMBEDDED_REPORT_PREFIX.encode("ascii"))
    + rb")([A-Za-z0-9+/=\r\n]+?)(\s*</script>)"
)
EMBEDDED_MARKERS = (ASSIGNMENT_MARKER, SCRIPT_MARKER)


@dataclass(frozen=True)
class ContainerEntry:
    """One file inside a container, addressed by its path in the container."""

    relative_path: str
    content: bytes
    info: zipfile.ZipInfo | None = None

    @property
    def is_dir(self) -> bool:
        return self.relative_path.endswith("/")

    def is_text(self, text_extensions: Collection[str]) -> bool:
        if self.is_dir:
            return False
        return PurePosixPath(self.relative_path).suffix.lower() in text_extensions


@dataclass(frozen=True)
class ScrubbedPayload:
    """Outcome of running one artifact through a codec.

    ``data`` holds the rebuilt file when something changed, else ``None``.
    """

    data: bytes | None
    changed: bool
    failures: tuple[RuleApplicationError, ...] = field(default_factory=tuple)
    scrubbed_entries: tuple[str, ...] = field(default_factory=tuple)
    message: str | None = None


@dataclass(frozen=True)
class EntriesTransform:
    """Entries after scrubbing, with the paths that changed."""

    entries: list[ContainerEntry]
    scrubbed_entries: tuple[str, ...]
    failures: tuple[RuleApplicationError, ...]

    @property
    def changed(self) -> bool:
        return bool(self.scrubbed_entries)


class ContainerCodec(Protocol):
    """Codec contract used by the orchestrator."""

    format: ContainerFormat

    def scrub_file(
        self, path: Path, transformer: ContentTransformer
    ) -> ScrubbedPayload:
        """Read ``path`` and return the scrubbed bytes, if any changed."""


class FlatCodec:
    """Whole-file UTF-8 text payloads."""

    format = ContainerFormat.FLAT

    def scrub_bytes(
        self, data: bytes, transformer: ContentTransformer, *, source: Path | str
    ) -> ScrubbedPayload:
        try:
            scrubbed, result = transformer.apply_bytes(data)
        except UnicodeDecodeError as exc:
            raise ArtifactAccessError(source, f"not UTF-8 text: {exc}") from exc
        return ScrubbedPayload(
            data=scrubbed if result.changed else None,
            changed=result.changed,
            failures=result.failures,
        )

    def scrub_file(
        self, path: Path, transformer: ContentTransformer
    ) -> ScrubbedPayload:
        return self.scrub_bytes(_read_bytes(path), transformer, source=path)


class ArchiveCodec:
    """Zip archives whose text entries are scrubbed individually."""

    format = ContainerFormat.ARCHIVE

    def __init__(
        self,
        text_extensions: Iterable[str],
        *,
        scratch_root: Path | None = None,
    ) -> None:
        self.text_extensions = frozenset(ext.lower() for ext in text_extensions)
        self.scratch_root = scratch_root

    def decode(
        self, data: bytes, *, source: Path | str = "<memory>"
    ) -> list[ContainerEntry]:
        """Read every entry of an in-memory archive."""
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                return [
                    ContainerEntry(
                        relative_path=info.filename,
                        content=b"" if info.is_dir() else archive.read(info),
                        info=info,
                    )
                    for info in archive.infolist()
                ]
        except _ARCHIVE_ERRORS as exc:
            raise ArtifactAccessError(source, f"invalid zip archive: {exc}") from exc

    def extract(self, archive_path: Path, scratch: Path) -> list[ContainerEntry]:
        """Extract ``archive_path`` under ``scratch`` and read the entries back."""
        entries: list[ContainerEntry] = []
        try:
            with zipfile.ZipFile(archive_path) as archive:
                for info in archive.infolist():
                    extracted = Path(archive.extract(info, scratch))
                    content = b"" if info.is_dir() else extracted.read_bytes()
                    entries.append(
                        ContainerEntry(
                            relative_path=info.filename, content=content, info=info
                        )
                    )
        except _ARCHIVE_ERRORS as exc:
            raise ArtifactAccessError(
                archive_path, f"invalid zip archive: {exc}"
            ) from exc
        except OSError as exc:
            raise ArtifactAccessError(archive_path, str(exc)) from exc
        return entries

    def encode(self, entries: Sequence[ContainerEntry]) -> bytes:
        """Build an archive holding every entry at its original path."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for entry in entries:
                archive.writestr(_entry_info(entry), entry.content)
        return buffer.getvalue()

    def transform(
        self, entries: Sequence[ContainerEntry], transformer: ContentTransformer
    ) -> EntriesTransform:
        """Scrub text entries; binary and non-UTF-8 entries pass through."""
        result_entries: list[ContainerEntry] = []
        scrubbed: list[str] = []
        failures: list[RuleApplicationError] = []
        for entry in entries:
            if not entry.is_text(self.text_extensions):
                result_entries.append(entry)
                continue
            try:
                content, result = transformer.apply_bytes(entry.content)
            except UnicodeDecodeError:
                result_entries.append(entry)
                continue
            failures.extend(result.failures)
            if result.changed:
                scrubbed.append(entry.relative_path)
                result_entries.append(replace(entry, content=content))
            else:
                result_entries.append(entry)
        return EntriesTransform(
            entries=result_entries,
            scrubbed_entries=tuple(scrubbed),
            failures=tuple(failures),
        )

    def scrub_bytes(
        self, data: bytes, transformer: ContentTransformer, *, source: Path | str
    ) -> ScrubbedPayload:
        """Scrub an archive held in memory."""
        outcome = self.transform(self.decode(data, source=source), transformer)
        return self._payload(outcome)

    def scrub_file(
        self, path: Path, transformer: ContentTransformer
    ) -> ScrubbedPayload:
        """Scrub an archive on disk, extracting it to a scratch area first."""
        if self.scratch_root is None:
            return self.scrub_bytes(_read_bytes(path), transformer, source=path)
        with scratch_area(self.scratch_root, _scratch_name(path)) as scratch:
            outcome = self.transform(self.extract(path, scratch), transformer)
            return self._payload(outcome)

    def _payload(self, outcome: EntriesTransform) -> ScrubbedPayload:
        return ScrubbedPayload(
            data=self.encode(outcome.entries) if outcome.changed else None,
            changed=outcome.changed,
            failures=outcome.failures,
            scrubbed_entries=outcome.scrubbed_entries,
        )


class EmbeddedArchiveCodec:
    """HTML/JS pages carrying the report as a base64 zip."""

    format = ContainerFormat.EMBEDDED_ARCHIVE

    def __init__(self, archive_codec: ArchiveCodec) -> None:
        self.archive_codec = archive_codec

    @staticmethod
    def locate(page: bytes) -> re.Match[bytes] | None:
        """Return the marker match: prefix, payload and suffix groups."""
        for marker in EMBEDDED_MARKERS:
            match = marker.search(page)
            if match is not None:
                return match
        return None

    def decode(
        self, page: bytes, *, source: Path | str = "<memory>"
    ) -> tuple[re.Match[bytes], list[ContainerEntry]] | None:
        match = self.locate(page)
        if match is None:
            return None
        try:
            archive_bytes = base64.b64decode(match.group(2))
        except (binascii.Error, ValueError) as exc:
            raise ArtifactAccessError(source, f"invalid base64 payload: {exc}") from exc
        return match, self.archive_codec.decode(archive_bytes, source=source)

    def encode(
        self,
        page: bytes,
        match: re.Match[bytes],
        entries: Sequence[ContainerEntry],
    ) -> bytes:
        """Splice a re-encoded archive into the payload span of ``match``."""
        payload = base64.b64encode(self.archive_codec.encode(entries))
        return page[: match.start(2)] + payload + page[match.end(2) :]

    def scrub_bytes(
        self, page: bytes, transformer: ContentTransformer, *, source: Path | str
    ) -> ScrubbedPayload:
        decoded = self.decode(page, source=source)
        if decoded is None:
            return ScrubbedPayload(
                data=None,
                changed=False,
                message="no embedded report archive found",
            )
        match, entries = decoded
        outcome = self.archive_codec.transform(entries, transformer)
        return ScrubbedPayload(
            data=(
                self.encode(page, match, outcome.entries) if outcome.changed else None
            ),
            changed=outcome.changed,
            failures=outcome.failures,
            scrubbed_entries=outcome.scrubbed_entries,
        )

    def scrub_file(
        self, path: Path, transformer: ContentTransformer
    ) -> ScrubbedPayload:
        return self.scrub_bytes(_read_bytes(path), transformer, source=path)


def _entry_info(entry: ContainerEntry) -> zipfile.ZipInfo:
    if entry.info is None:
        info = zipfile.ZipInfo(entry.relative_path, date_time=time.localtime()[:6])
        info.compress_type = zipfile.ZIP_DEFLATED
        return info
    source = entry.info
    info = zipfile.ZipInfo(source.filename, date_time=source.date_time)
    info.compress_type = source.compress_type
    info.external_attr = source.external_attr
    info.create_system = source.create_system
    info.comment = source.comment
    return info


def _scratch_name(path: Path) -> str:
    return path.stem or path.name


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ArtifactAccessError(path, str(exc)) from exc
