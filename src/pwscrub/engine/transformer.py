"""Apply an ordered rule set to text payloads."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from pwscrub.errors import RuleApplicationError
from pwscrub.rules.model import RuleSet, ScrubRule


@dataclass(frozen=True)
class TransformResult:
    """Scrubbed content plus whether any rule changed it."""

    content: str
    changed: bool
    failures: tuple[RuleApplicationError, ...] = field(default_factory=tuple)


class ContentTransformer:
    """Apply rules in sequence, each to the output of the previous one.

    A rule that fails to compile or raises while substituting is skipped and
    reported in ``TransformResult.failures``; the remaining rules still run.
    """

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules
        self._compiled: dict[int, re.Pattern[str] | RuleApplicationError] = {}

    def apply(self, content: str) -> TransformResult:
        scrubbed = content
        failures: list[RuleApplicationError] = []
        for index, rule in enumerate(self.rules):
            pattern = self._pattern_for(index, rule)
            if isinstance(pattern, RuleApplicationError):
                failures.append(pattern)
                continue
            try:
                scrubbed = pattern.sub(rule.replacement, scrubbed)
            except (re.error, IndexError, RecursionError, TypeError) as exc:
                failures.append(RuleApplicationError(rule.source, str(exc)))
        return TransformResult(
            content=scrubbed,
            changed=scrubbed != content,
            failures=tuple(failures),
        )

    def apply_bytes(
        self, data: bytes, *, encoding: str = "utf-8"
    ) -> tuple[bytes, TransformResult]:
        """Scrub encoded text; unchanged input is returned as the same object.

        Raises ``UnicodeDecodeError`` when ``data`` is not valid text.
        """
        result = self.apply(data.decode(encoding))
        if not result.changed:
            return data, result
        return result.content.encode(encoding), result

    def _pattern_for(
        self, index: int, rule: ScrubRule
    ) -> re.Pattern[str] | RuleApplicationError:
        cached = self._compiled.get(index)
        if cached is None:
            try:
                cached = rule.compile()
            except (re.error, OverflowError, RecursionError) as exc:
                cached = RuleApplicationError(rule.source, f"invalid pattern: {exc}")
            self._compiled[index] = cached
        return cached


def apply_rules(content: str, rules: RuleSet) -> str:
    """Return ``content`` with every rule applied in order."""
    return ContentTransformer(rules).apply(content).content
