"""Error taxonomy for the scrubbing engine."""

from __future__ import annotations

from pathlib import Path


class ScrubberError(Exception):
    """Base class for all scrubber failures."""


class ConfigError(ScrubberError):
    """Raised when the Playwright config or scrubber settings cannot be used."""


class RuleConstructionError(ScrubberError, ValueError):
    """Raised when a rule set would be empty or a rule is malformed."""


class RuleApplicationError(ScrubberError):
    """A single rule failed to compile or match; the rule is skipped."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"rule {pattern!r} skipped: {reason}")
        self.pattern = pattern
        self.reason = reason


class ArtifactAccessError(ScrubberError):
    """Raised when a discovered artifact is unreadable or not a valid container."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"cannot process {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class ArtifactWriteError(ScrubberError):
    """Raised when a scrubbed artifact cannot be written."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"cannot write {path}: {reason}")
        self.path = Path(path)
        self.reason = reason
