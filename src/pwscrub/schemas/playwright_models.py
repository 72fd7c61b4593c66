"""Models for the subset of a Playwright config the scrubber reads."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pwscrub.schemas.base import ExternalSchemaModel

ReporterEntry = str | list[Any]


class UseOptions(ExternalSchemaModel):
    """The ``use`` block of a Playwright config."""

    trace: bool | str | dict[str, Any] | None = None


class PlaywrightConfig(ExternalSchemaModel):
    """Resolved Playwright configuration, treated as untrusted input."""

    reporter: list[ReporterEntry] = Field(default_factory=list)
    output_dir: str | None = Field(default=None, alias="outputDir")
    use: UseOptions = Field(default_factory=UseOptions)

    @field_validator("reporter", mode="before")
    @classmethod
    def normalize_reporter(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("use", mode="before")
    @classmethod
    def normalize_use(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value
