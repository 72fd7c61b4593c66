"""Built-in rule families and their composition."""

from __future__ import annotations

import re
from collections.abc import Iterable

from pwscrub.config.models import (
    BASE_IDENTIFIERS,
    EXTENDED_IDENTIFIERS,
    LocatorRuleConfig,
)
from pwscrub.constants import ASTERISK_MASK
from pwscrub.rules.locator import create_locator_rules
from pwscrub.rules.model import RuleSet, ScrubRule
from pwscrub.schemas.enums import MaskingStrategy

DEFAULT_JSON_FIELDS = ("password", "token", "email")
TRACE_FIELDS = ("value", "text")

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
CARD_PATTERN = re.compile(r"\b(?:\d{4}[-\s]?){3}\d{4}\b")
SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
JWT_PATTERN = re.compile(
    r"eyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}"
)
API_KEY_PATTERN = re.compile(
    r"([\"']?api[-_ ]?key[\"']?\s*[=:]\s*[\"'])([^\"']{8,})([\"'])", re.IGNORECASE
)
AUTH_TOKEN_PATTERN = re.compile(
    r"([\"']?auth(?:orization)?[-_ ]?token[\"']?\s*[=:]\s*[\"'])([^\"']{8,})([\"'])",
    re.IGNORECASE,
)
# JSON numbers (timestamps in trace events) follow ':', '[', ',' and must survive.
LONG_DIGITS_PATTERN = re.compile(r"(?<![:\[,\d.])(?<!: )(?<!, )\b\d{10,16}\b(?!\.\d)")


def legacy_rules() -> RuleSet:
    """Shape-based rules for common PII and credential formats."""
    return RuleSet(
        [
            ScrubRule(EMAIL_PATTERN, "user@example.com", description="email"),
            ScrubRule(CARD_PATTERN, "****-****-****-****", description="credit-card"),
            ScrubRule(SSN_PATTERN, "***-**-****", description="national-id"),
            ScrubRule(JWT_PATTERN, "JWT_TOKEN_REMOVED", description="jwt"),
            ScrubRule(
                API_KEY_PATTERN,
                rf"\g<1>{ASTERISK_MASK}\g<3>",
                description="api-key",
            ),
            ScrubRule(
                AUTH_TOKEN_PATTERN,
                rf"\g<1>{ASTERISK_MASK}\g<3>",
                description="auth-token",
            ),
            ScrubRule(LONG_DIGITS_PATTERN, "**********", description="long-digits"),
        ]
    )


def json_field_rules(fields: Iterable[str] = DEFAULT_JSON_FIELDS) -> RuleSet:
    """Mask the value of ``"<field>": "<value>"`` pairs, keeping quotes and spacing."""
    return RuleSet(
        ScrubRule(
            re.compile(rf"([\"']{re.escape(name)}[\"']\s*:\s*[\"'])([^\"']+)([\"'])"),
            rf"\g<1>{ASTERISK_MASK}\g<3>",
            description=f"json-field:{name}",
        )
        for name in fields
    )


def trace_rules(fields: Iterable[str] = TRACE_FIELDS) -> RuleSet:
    """Mask long ``value``/``text`` strings recorded in trace action events."""
    return RuleSet(
        ScrubRule(
            re.compile(rf"(\"{re.escape(name)}\"\s*:\s*\")([^\"]{{8,}})(\")"),
            rf"\g<1>{ASTERISK_MASK}\g<3>",
            description=f"trace-field:{name}",
        )
        for name in fields
    )


def default_rules(config: LocatorRuleConfig | None = None) -> RuleSet:
    """Locator rules first, then shape-based fallbacks, then JSON fields."""
    return RuleSet.concat(
        create_locator_rules(config),
        legacy_rules(),
        json_field_rules(),
    )


def playwright_rules(config: LocatorRuleConfig | None = None) -> RuleSet:
    """Default rules over the extended identifier list unless overridden."""
    return default_rules(
        config or LocatorRuleConfig(sensitive_identifiers=list(EXTENDED_IDENTIFIERS))
    )


def build_locator_config(
    *,
    additional_identifiers: Iterable[str] = (),
    exclude_identifiers: Iterable[str] = (),
    masking_strategy: MaskingStrategy | str = MaskingStrategy.ASTERISKS,
    custom_mask: str | None = None,
    case_sensitive: bool = False,
) -> LocatorRuleConfig:
    """Derive a locator config from the base identifiers plus project tweaks."""
    excluded = set(exclude_identifiers)
    identifiers = [
        identifier
        for identifier in [*BASE_IDENTIFIERS, *additional_identifiers]
        if identifier not in excluded
    ]
    return LocatorRuleConfig(
        sensitive_identifiers=identifiers,
        masking_strategy=masking_strategy,
        custom_mask=custom_mask,
        case_sensitive=case_sensitive,
    )
