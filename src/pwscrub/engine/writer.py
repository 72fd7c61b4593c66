"""Output placement and atomic writes for scrubbed artifacts."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from pwscrub.errors import ArtifactAccessError, ArtifactWriteError

LOGGER = logging.getLogger(__name__)


def mirrored_path(source: Path, output_dir: Path | None, cwd: Path) -> Path:
    """Return where the scrubbed copy of ``source`` belongs.

    Without an output directory the artifact is rewritten in place. Otherwise
    its path relative to ``cwd`` is recreated under ``output_dir``; paths
    outside ``cwd`` are mirrored by their absolute parts.
    """
    if output_dir is None:
        return source
    resolved = source.resolve()
    base = cwd.resolve()
    if resolved.is_relative_to(base):
        relative = resolved.relative_to(base)
    else:
        relative = Path(*resolved.parts[1:])
    return output_dir.resolve() / relative


def write_atomic(destination: Path, data: bytes) -> None:
    """Write ``data`` so readers see either the old file or the new one."""
    tmp_name: str | None = None
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=destination.parent,
            prefix=f".{destination.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, destination)
    except OSError as exc:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise ArtifactWriteError(destination, str(exc)) from exc


@dataclass(frozen=True)
class ArtifactWriter:
    """Places scrubbed bytes according to the run's output options."""

    cwd: Path
    output_dir: Path | None = None
    preserve_originals: bool = False

    def destination_for(self, source: Path) -> Path:
        return mirrored_path(source, self.output_dir, self.cwd)

    def write(self, source: Path, data: bytes) -> Path:
        """Write scrubbed ``data`` for ``source`` and return the written path."""
        destination = self.destination_for(source)
        write_atomic(destination, data)
        if destination.resolve() != source.resolve() and not self.preserve_originals:
            try:
                source.unlink()
            except OSError as exc:
                LOGGER.warning("Could not remove original %s: %s", source, exc)
        return destination

    def mirror(self, source: Path) -> Path | None:
        """Copy an untouched ``source`` into the output directory.

        Returns ``None`` for in-place runs, where there is nothing to copy.
        """
        if self.output_dir is None:
            return None
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise ArtifactAccessError(source, str(exc)) from exc
        return self.write(source, data)
