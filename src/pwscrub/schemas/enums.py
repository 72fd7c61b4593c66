"""Enum definitions for canonical contracts."""

from __future__ import annotations

from enum import Enum


class MaskingStrategy(str, Enum):
    ASTERISKS = "asterisks"
    PLACEHOLDER = "placeholder"
    CUSTOM = "custom"


class ArtifactKind(str, Enum):
    HTML_REPORT = "html_report"
    TRACE = "trace"


class ContainerFormat(str, Enum):
    FLAT = "flat"
    ARCHIVE = "archive"
    EMBEDDED_ARCHIVE = "embedded_archive"


class OutcomeStatus(str, Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


LEGACY_MASKING_MAP: dict[str, MaskingStrategy] = {
    "asterisks": MaskingStrategy.ASTERISKS,
    "asterisk": MaskingStrategy.ASTERISKS,
    "stars": MaskingStrategy.ASTERISKS,
    "placeholder": MaskingStrategy.PLACEHOLDER,
    "custom": MaskingStrategy.CUSTOM,
}


def normalize_masking_strategy(raw_value: str | MaskingStrategy) -> MaskingStrategy:
    """Normalize masking labels into canonical enum values."""
    if isinstance(raw_value, MaskingStrategy):
        return raw_value
    normalized = LEGACY_MASKING_MAP.get(raw_value.strip().lower())
    if normalized is None:
        raise ValueError(f"Unsupported masking strategy: {raw_value}")
    return normalized
