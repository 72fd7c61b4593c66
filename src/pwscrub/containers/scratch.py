"""Artifact-scoped scratch directories."""

from __future__ import annotations

import contextlib
import logging
import shutil
from collections.abc import Iterator
from pathlib import Path

from pwscrub.errors import ArtifactAccessError

LOGGER = logging.getLogger(__name__)


@contextlib.contextmanager
def scratch_area(root: Path, name: str) -> Iterator[Path]:
    """Yield an empty ``root/name`` directory and remove it on exit.

    The directory name is derived from the artifact, so artifacts must be
    processed one at a time. ``root`` itself is removed once empty.
    """
    path = root / name
    try:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as exc:
        raise ArtifactAccessError(
            path, f"cannot create scratch directory: {exc}"
        ) from exc
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            LOGGER.warning("Could not clean up scratch directory %s: %s", path, exc)
        with contextlib.suppress(OSError):
            root.rmdir()
