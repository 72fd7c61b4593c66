"""Glob-based artifact enumeration."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from pathspec import GitIgnoreSpec


@dataclass
class ArtifactFinder:
    """Recursive, sorted file discovery under a root using gitignore-style globs."""

    include_spec: GitIgnoreSpec
    excluded_dirs: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def from_globs(
        cls,
        globs: Iterable[str],
        *,
        excluded_dirs: Iterable[Path] = (),
    ) -> "ArtifactFinder":
        include_spec = GitIgnoreSpec.from_lines(list(globs))
        return cls(
            include_spec=include_spec,
            excluded_dirs=tuple(path.resolve() for path in excluded_dirs),
        )

    def find(self, root: Path) -> list[Path]:
        """Return matching files under ``root``; a missing root yields nothing."""
        if not root.is_dir() or not self.include_spec.patterns:
            return []
        matches: list[Path] = []
        for candidate in sorted(root.rglob("*")):
            if not candidate.is_file() or self._is_excluded(candidate):
                continue
            rel = candidate.relative_to(root).as_posix()
            if self.include_spec.match_file(rel):
                matches.append(candidate)
        return matches

    def _is_excluded(self, path: Path) -> bool:
        resolved = path.resolve()
        return any(resolved.is_relative_to(excluded) for excluded in self.excluded_dirs)
