"""Shared schema base classes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictSchemaModel(BaseModel):
    """Base model with strict validation defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, frozen=False)


class ExternalSchemaModel(BaseModel):
    """Base model for structures produced by other tools.

    Unknown keys are kept so that a config object evaluated from a user's
    project round-trips without loss; only the fields read here are validated.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)
