"""Rule file loading and settings-driven rule set composition."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
import yaml

from pwscrub.config.models import ScrubberSettings
from pwscrub.constants import DEFAULT_RULES_FILES
from pwscrub.errors import ConfigError, RuleConstructionError
from pwscrub.rules.defaults import json_field_rules, legacy_rules, trace_rules
from pwscrub.rules.locator import create_locator_rules
from pwscrub.rules.model import RuleSet, ScrubRule, ScrubRuleDict


def load_rules_file(path: Path) -> RuleSet:
    """Load rules from a JSON or YAML file.

    The file holds either a list of ``{pattern, replacement}`` mappings or a
    mapping with a ``rules`` key holding that list. ``ignore_case`` (or a
    ``flags`` string containing ``i``) makes a pattern case-insensitive.
    """
    if not path.exists():
        raise ConfigError(f"Rules file not found: {path}")
    suffix = path.suffix.lower()
    try:
        raw_bytes = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Rules file could not be read: {path}: {exc}") from exc

    try:
        if suffix == ".json":
            payload = orjson.loads(raw_bytes)
        elif suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(raw_bytes.decode("utf-8"))
        else:
            raise ConfigError(
                f"Unsupported rules file extension: {suffix or '<none>'}. "
                "Supported: .json, .yaml, .yml"
            )
    except (orjson.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Rules file is malformed: {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("rules")
    if not isinstance(payload, list):
        raise ConfigError(f"Rules file must contain a list of rules: {path}")

    try:
        return RuleSet(_rule_from_entry(entry) for entry in payload)
    except RuleConstructionError as exc:
        raise ConfigError(f"Rules file {path} is invalid: {exc}") from exc


def _rule_from_entry(entry: Any) -> ScrubRule:
    if not isinstance(entry, dict):
        raise RuleConstructionError(f"Rule entries must be mappings, got {entry!r}")
    data: ScrubRuleDict = {
        "pattern": entry.get("pattern"),
        "replacement": entry.get("replacement"),
        "ignore_case": bool(entry.get("ignore_case"))
        or "i" in str(entry.get("flags", "")),
        "description": str(entry.get("description") or ""),
    }
    if data["pattern"] is None or data["replacement"] is None:
        raise RuleConstructionError("Rule entries need 'pattern' and 'replacement'")
    return ScrubRule.from_dict(data)


def find_default_rules_file(base_dir: Path) -> Path | None:
    """Return the first conventional rules file present in ``base_dir``."""
    for name in DEFAULT_RULES_FILES:
        candidate = base_dir / name
        if candidate.is_file():
            return candidate
    return None


def build_rule_set(
    settings: ScrubberSettings, *, search_dir: Path | None = None
) -> RuleSet:
    """Compose the active rule set from settings, in a fixed order.

    Order: locator, legacy, JSON field, inline custom, rules file. Trace field
    rules are kept apart, see ``build_trace_rule_set``.
    Without a configured rules file, a conventional one in ``search_dir`` is used.
    """
    sources = settings.rules
    rules_file = sources.rules_file
    if rules_file is None and search_dir is not None:
        rules_file = find_default_rules_file(search_dir)
    parts: list[RuleSet] = []
    if sources.locator:
        parts.append(create_locator_rules(settings.locator))
    if sources.legacy:
        parts.append(legacy_rules())
    if sources.json_fields and sources.json_field_names:
        parts.append(json_field_rules(sources.json_field_names))
    if sources.custom:
        parts.append(
            RuleSet(
                ScrubRule(
                    pattern=custom.pattern,
                    replacement=custom.replacement,
                    ignore_case=not custom.case_sensitive,
                    description=custom.description or "custom",
                )
                for custom in sources.custom
            )
        )
    if rules_file is not None:
        parts.append(load_rules_file(rules_file))
    try:
        return RuleSet.concat(*parts)
    except RuleConstructionError as exc:
        raise ConfigError(f"Settings produce no scrubbing rules: {exc}") from exc


def build_trace_rule_set(settings: ScrubberSettings) -> RuleSet | None:
    """Return the extra rules applied to trace artifacts, if enabled."""
    if not settings.rules.trace_fields:
        return None
    return trace_rules()
