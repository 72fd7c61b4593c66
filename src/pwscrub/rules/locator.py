"""Locator-based rules: mask values passed to input calls on sensitive fields.

Each rule matches a Playwright call chain such as
``page.locator("#password").fill("hunter2")`` and captures three groups: the
selector plus the opening of the input call, the literal value, and the
closing quote and parenthesis. Only the middle group is replaced, so the
selector and the operation are left byte-identical.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

from pwscrub.config.models import LocatorRuleConfig
from pwscrub.rules.model import RuleSet, ScrubRule

_CALL = r"\.{op}\s*\(\s*[\"']"
_VALUE = r"([^\"']*)"
_CLOSE = r"([\"']\s*\))"


class InputOperation(str, Enum):
    """Playwright locator methods whose first argument is user data."""

    FILL = "fill"
    TYPE = "type"
    PRESS_SEQUENTIALLY = "pressSequentially"
    SELECT_OPTION = "selectOption"
    SET_INPUT_FILES = "setInputFiles"


class SelectorSyntax(Enum):
    """Selector shapes recognised in recorded test source.

    Each value is the selector part of the pattern; ``{ident}`` is replaced by
    the escaped identifier.
    """

    ID_ATTRIBUTE = r"\.locator\s*\(\s*[\"'][^\"']*#[^\"']*{ident}[^\"']*[\"']\s*\)"
    ATTRIBUTE = (
        r"\.locator\s*\(\s*[\"'][^\"']*\[[^\]]*{ident}[^\]]*\][^\"']*[\"']\s*\)"
    )
    XPATH_ID = (
        r"\.locator\s*\(\s*[\"']//[^\"']*\[@id\s*=\s*[\"'][^\"']*{ident}[^\"']*[\"']"
        r"[^\"']*[\"']\s*\)"
    )
    XPATH_NAME = (
        r"\.locator\s*\(\s*[\"']//[^\"']*\[@name\s*=\s*[\"'][^\"']*{ident}[^\"']*[\"']"
        r"[^\"']*[\"']\s*\)"
    )
    XPATH_CLASS = (
        r"\.locator\s*\(\s*[\"']//[^\"']*\[@class\s*=\s*[\"'][^\"']*{ident}[^\"']*[\"']"
        r"[^\"']*[\"']\s*\)"
    )
    XPATH_CONTAINS = (
        r"\.locator\s*\(\s*[\"']//[^\"']*contains\s*\([^,]+,\s*[\"'][^\"']*{ident}"
        r"[^\"']*[\"']\)[^\"']*[\"']\s*\)"
    )
    DATA_TESTID = (
        r"\.locator\s*\(\s*[\"']\[data-testid[^\]]*{ident}[^\]]*\][\"']\s*\)"
    )
    GET_BY_TEST_ID = r"\.getByTestId\s*\(\s*[\"'][^\"']*{ident}[^\"']*[\"']\s*\)"
    GET_BY_ROLE = (
        r"\.getByRole\s*\([^)]*name\s*:\s*[\"'][^\"']*{ident}[^\"']*[\"'][^)]*\)"
    )
    GET_BY_LABEL = r"\.getByLabel\s*\(\s*[\"'][^\"']*{ident}[^\"']*[\"']\s*\)"
    GET_BY_PLACEHOLDER = (
        r"\.getByPlaceholder\s*\(\s*[\"'][^\"']*{ident}[^\"']*[\"']\s*\)"
    )
    GENERIC_LOCATOR = r"\.locator\s*\([^)]*{ident}[^)]*\)"
    GENERIC_GET_BY = r"\.getBy\w+\s*\([^)]*{ident}[^)]*\)"

    def build(
        self,
        identifier: str,
        operation: InputOperation | str,
        *,
        case_sensitive: bool = False,
    ) -> re.Pattern[str]:
        """Compile the pattern for one identifier and one input operation."""
        op = operation.value if isinstance(operation, InputOperation) else operation
        selector = self.value.replace("{ident}", re.escape(identifier))
        call = _CALL.replace("{op}", re.escape(op))
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.compile(f"({selector}{call}){_VALUE}{_CLOSE}", flags)


def mask_template(mask: str) -> str:
    """Return the replacement template that keeps groups 1 and 3 around ``mask``."""
    return r"\g<1>" + mask.replace("\\", "\\\\") + r"\g<3>"


def create_locator_rules(
    config: LocatorRuleConfig | None = None,
    *,
    syntaxes: Iterable[SelectorSyntax] = tuple(SelectorSyntax),
    operations: Iterable[InputOperation] = tuple(InputOperation),
) -> RuleSet:
    """Generate one rule per identifier, selector syntax and operation."""
    active = config or LocatorRuleConfig()
    replacement = mask_template(active.mask)
    syntax_list = tuple(syntaxes)
    operation_list = tuple(operations)
    rules = [
        ScrubRule(
            pattern=syntax.build(
                identifier, operation, case_sensitive=active.case_sensitive
            ),
            replacement=replacement,
            description=f"locator:{syntax.name.lower()}:{operation.value}:{identifier}",
        )
        for identifier in active.sensitive_identifiers
        for syntax in syntax_list
        for operation in operation_list
    ]
    return RuleSet(rules)


def custom_rules(
    patterns: Iterable[tuple[str, str] | tuple[str, str, bool]],
) -> RuleSet:
    """Build rules from ``(pattern, replacement[, case_sensitive])`` entries."""
    rules = []
    for entry in patterns:
        pattern, replacement, *rest = entry
        case_sensitive = bool(rest[0]) if rest else False
        rules.append(
            ScrubRule(
                pattern=pattern,
                replacement=replacement,
                ignore_case=not case_sensitive,
                description="custom",
            )
        )
    return RuleSet(rules)
