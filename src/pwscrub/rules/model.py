"""Scrubbing rule value objects."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TypedDict

from pwscrub.errors import RuleConstructionError


class ScrubRuleDict(TypedDict, total=False):
    """Typed dictionary shape for serialized scrubbing rules."""

    pattern: str
    replacement: str
    ignore_case: bool
    description: str


@dataclass(frozen=True)
class ScrubRule:
    """A single pattern-replacement rule.

    ``pattern`` may be raw text or a compiled pattern. Text is compiled with
    ``re.IGNORECASE`` only when ``ignore_case`` is set; a compiled pattern keeps
    its own flags. Every match is replaced. ``replacement`` is an ``re``
    template, so ``\\1`` and ``\\g<name>`` refer to captured groups.
    """

    pattern: str | re.Pattern[str]
    replacement: str
    ignore_case: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.pattern, (str, re.Pattern)):
            kind = type(self.pattern).__name__
            raise RuleConstructionError(
                f"Rule pattern must be text or a compiled pattern, got {kind}"
            )
        if isinstance(self.pattern, re.Pattern) and not isinstance(
            self.pattern.pattern, str
        ):
            raise RuleConstructionError(
                "Compiled rule patterns must match text, not bytes"
            )
        if isinstance(self.pattern, str) and not self.pattern:
            raise RuleConstructionError("Rule pattern must not be empty")
        if not isinstance(self.replacement, str):
            raise RuleConstructionError("Rule replacement must be text")

    @property
    def source(self) -> str:
        """Return the pattern text, for logging."""
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.pattern
        return self.pattern

    def compile(self) -> re.Pattern[str]:
        """Return the compiled pattern; raises ``re.error`` on invalid text."""
        if isinstance(self.pattern, re.Pattern):
            return self.pattern
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(self.pattern, flags)

    def to_dict(self) -> ScrubRuleDict:
        """Return a JSON-serializable mapping."""
        ignore_case = self.ignore_case
        if isinstance(self.pattern, re.Pattern):
            ignore_case = bool(self.pattern.flags & re.IGNORECASE)
        return ScrubRuleDict(
            pattern=self.source,
            replacement=self.replacement,
            ignore_case=ignore_case,
            description=self.description,
        )

    @classmethod
    def from_dict(cls, data: ScrubRuleDict) -> ScrubRule:
        """Construct a rule from a JSON-compatible mapping."""
        try:
            pattern = data["pattern"]
            replacement = data["replacement"]
        except KeyError as exc:
            raise RuleConstructionError(f"Rule is missing {exc.args[0]!r}") from exc
        return cls(
            pattern=pattern,
            replacement=replacement,
            ignore_case=bool(data.get("ignore_case", False)),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True, init=False)
class RuleSet:
    """Immutable, non-empty, ordered sequence of rules."""

    rules: tuple[ScrubRule, ...]

    def __init__(self, rules: Iterable[ScrubRule]) -> None:
        copied = tuple(rules)
        if not copied:
            raise RuleConstructionError("At least one scrubbing rule must be provided")
        for rule in copied:
            if not isinstance(rule, ScrubRule):
                raise RuleConstructionError(
                    f"Rule sets hold ScrubRule values, got {type(rule).__name__}"
                )
        object.__setattr__(self, "rules", copied)

    def __iter__(self) -> Iterator[ScrubRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __getitem__(self, index: int) -> ScrubRule:
        return self.rules[index]

    def __add__(self, other: RuleSet | Iterable[ScrubRule]) -> RuleSet:
        return RuleSet((*self.rules, *other))

    @classmethod
    def concat(cls, *parts: Iterable[ScrubRule]) -> RuleSet:
        """Join rule families in order."""
        return cls(rule for part in parts for rule in part)
