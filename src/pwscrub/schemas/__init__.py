"""Schema exports."""

from pwscrub.schemas.base import ExternalSchemaModel, StrictSchemaModel
from pwscrub.schemas.enums import (
    ArtifactKind,
    ContainerFormat,
    MaskingStrategy,
    OutcomeStatus,
    normalize_masking_strategy,
)
from pwscrub.schemas.playwright_models import PlaywrightConfig, UseOptions
from pwscrub.schemas.report_models import ArtifactOutcome, ScrubReport

__all__ = [
    "ArtifactKind",
    "ArtifactOutcome",
    "ContainerFormat",
    "ExternalSchemaModel",
    "MaskingStrategy",
    "OutcomeStatus",
    "PlaywrightConfig",
    "ScrubReport",
    "StrictSchemaModel",
    "UseOptions",
    "normalize_masking_strategy",
]
