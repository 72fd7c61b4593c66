"""Run report models rendered by the CLI."""

from __future__ import annotations

from pydantic import Field

from pwscrub.schemas.base import StrictSchemaModel
from pwscrub.schemas.enums import ArtifactKind, ContainerFormat, OutcomeStatus


class ArtifactOutcome(StrictSchemaModel):
    """Result of processing a single artifact file."""

    path: str
    kind: ArtifactKind
    container: ContainerFormat | None = None
    status: OutcomeStatus
    output_path: str | None = None
    message: str | None = None
    rule_failures: list[str] = Field(default_factory=list)


class ScrubReport(StrictSchemaModel):
    """Aggregate outcome of one scrub run."""

    config_path: str
    html_report_dir: str | None = None
    trace_dir: str | None = None
    rule_count: int = Field(ge=1)
    artifacts: list[ArtifactOutcome] = Field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        """Return the number of artifacts with the given status."""
        return sum(1 for outcome in self.artifacts if outcome.status == status)

    @property
    def changed_paths(self) -> list[str]:
        return [
            outcome.path
            for outcome in self.artifacts
            if outcome.status == OutcomeStatus.CHANGED
        ]
