"""Rule model and rule factories."""

from pwscrub.rules.defaults import (
    build_locator_config,
    default_rules,
    json_field_rules,
    legacy_rules,
    playwright_rules,
    trace_rules,
)
from pwscrub.rules.loader import (
    build_rule_set,
    build_trace_rule_set,
    find_default_rules_file,
    load_rules_file,
)
from pwscrub.rules.locator import (
    InputOperation,
    SelectorSyntax,
    create_locator_rules,
    custom_rules,
)
from pwscrub.rules.model import RuleSet, ScrubRule, ScrubRuleDict

__all__ = [
    "InputOperation",
    "RuleSet",
    "ScrubRule",
    "ScrubRuleDict",
    "SelectorSyntax",
    "build_locator_config",
    "build_rule_set",
    "build_trace_rule_set",
    "create_locator_rules",
    "custom_rules",
    "default_rules",
    "find_default_rules_file",
    "json_field_rules",
    "legacy_rules",
    "load_rules_file",
    "playwright_rules",
    "trace_rules",
]
