"""Pydantic models for scrubber settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator

from pwscrub.constants import ASTERISK_MASK, DEFAULT_SCRATCH_DIR, PLACEHOLDER_MASK
from pwscrub.schemas.base import StrictSchemaModel
from pwscrub.schemas.enums import MaskingStrategy, normalize_masking_strategy

BASE_IDENTIFIERS = [
    "password",
    "pass",
    "pwd",
    "secret",
    "token",
    "username",
    "user",
    "login",
    "email",
    "mail",
    "credit",
    "card",
    "ssn",
    "social",
    "phone",
]
EXTENDED_IDENTIFIERS = [
    *BASE_IDENTIFIERS,
    "address",
    "zip",
    "postal",
    "account",
    "otp",
    "pin",
    "security",
    "answer",
    "key",
]


class LocatorRuleConfig(StrictSchemaModel):
    """Inputs for generating locator-based rules."""

    sensitive_identifiers: list[str] = Field(
        default_factory=lambda: list(EXTENDED_IDENTIFIERS), min_length=1
    )
    masking_strategy: MaskingStrategy = MaskingStrategy.ASTERISKS
    custom_mask: str | None = None
    case_sensitive: bool = False

    @field_validator("masking_strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, value: str | MaskingStrategy) -> MaskingStrategy:
        return normalize_masking_strategy(value)

    @field_validator("sensitive_identifiers")
    @classmethod
    def dedupe_identifiers(cls, value: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for identifier in value:
            stripped = identifier.strip()
            if stripped:
                seen.setdefault(stripped, None)
        if not seen:
            raise ValueError("sensitive_identifiers must contain a non-blank entry")
        return list(seen)

    @property
    def mask(self) -> str:
        """Return the replacement text for the configured strategy."""
        if self.masking_strategy == MaskingStrategy.PLACEHOLDER:
            return PLACEHOLDER_MASK
        if self.masking_strategy == MaskingStrategy.CUSTOM:
            return self.custom_mask or ASTERISK_MASK
        return ASTERISK_MASK


class CustomRuleConfig(StrictSchemaModel):
    """User-declared pattern rule."""

    pattern: str = Field(min_length=1)
    replacement: str
    case_sensitive: bool = False
    description: str = ""


class RuleSourcesConfig(StrictSchemaModel):
    """Which rule families make up the active rule set.

    ``trace_fields`` rules are added for trace artifacts only.
    """

    locator: bool = True
    legacy: bool = True
    json_fields: bool = True
    trace_fields: bool = True
    json_field_names: list[str] = Field(
        default_factory=lambda: ["password", "token", "email"]
    )
    custom: list[CustomRuleConfig] = Field(default_factory=list)
    rules_file: Path | None = None

    @model_validator(mode="after")
    def validate_any_source(self) -> "RuleSourcesConfig":
        enabled = (
            self.locator,
            self.legacy,
            self.json_fields,
            bool(self.custom),
            self.rules_file is not None,
        )
        if not any(enabled):
            raise ValueError("At least one rule source must be enabled")
        return self


class DiscoveryConfig(StrictSchemaModel):
    """Globs and extensions used when enumerating artifacts."""

    html_report_globs: list[str] = Field(
        default_factory=lambda: ["**/*.html", "**/*.js", "data/**/*.zip"]
    )
    trace_globs: list[str] = Field(default_factory=lambda: ["**/*.zip"])
    attachment_globs: list[str] = Field(default_factory=list)
    text_extensions: list[str] = Field(
        default_factory=lambda: [
            ".json",
            ".jsonl",
            ".ndjson",
            ".trace",
            ".network",
            ".stacks",
            ".txt",
            ".log",
            ".md",
            ".html",
            ".htm",
            ".xml",
            ".js",
            ".mjs",
        ]
    )
    scratch_dir: Path = Path(DEFAULT_SCRATCH_DIR)

    @field_validator("text_extensions")
    @classmethod
    def normalize_extensions(cls, value: list[str]) -> list[str]:
        normalized = []
        for extension in value:
            cleaned = extension.strip().lower()
            if not cleaned:
                continue
            normalized.append(cleaned if cleaned.startswith(".") else f".{cleaned}")
        return normalized


class ScrubberSettings(StrictSchemaModel):
    """Central scrubber configuration."""

    locator: LocatorRuleConfig = Field(default_factory=LocatorRuleConfig)
    rules: RuleSourcesConfig = Field(default_factory=RuleSourcesConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
