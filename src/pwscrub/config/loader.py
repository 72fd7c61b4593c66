"""Settings loading and override resolution."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import ValidationError

from pwscrub.config.models import EXTENDED_IDENTIFIERS, ScrubberSettings
from pwscrub.constants import DEFAULT_SETTINGS_PATH
from pwscrub.errors import ConfigError

DEFAULT_SETTINGS_FILE = Path(DEFAULT_SETTINGS_PATH)
ENV_PREFIX = "PWSCRUB_"
DISABLE_DOTENV_VAR = "PWSCRUB_DISABLE_DOTENV"
_TRUTHY = {"1", "true", "yes", "on"}


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Settings file could not be read: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Settings file must deserialize to a mapping")
    return data


def apply_overrides(
    raw_settings: dict[str, Any],
    env: Mapping[str, str],
    cli_overrides: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Apply precedence: CLI > env > YAML defaults."""
    merged = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in raw_settings.items()
    }
    _apply_env_overrides(merged, env)

    if cli_overrides:
        locator = merged.setdefault("locator", {})
        rules = merged.setdefault("rules", {})
        if cli_overrides.get("masking_strategy"):
            locator["masking_strategy"] = cli_overrides["masking_strategy"]
        if cli_overrides.get("custom_mask"):
            locator["custom_mask"] = cli_overrides["custom_mask"]
            locator["masking_strategy"] = "custom"
        if cli_overrides.get("sensitive_fields"):
            _extend_identifiers(locator, cli_overrides["sensitive_fields"])
        if cli_overrides.get("rules_file"):
            rules["rules_file"] = cli_overrides["rules_file"]
        if cli_overrides.get("legacy_only"):
            rules.update(
                {
                    "locator": False,
                    "legacy": True,
                    "json_fields": False,
                    "trace_fields": False,
                }
            )
    return merged


def _apply_env_overrides(merged: dict[str, Any], env: Mapping[str, str]) -> None:
    if env.get("PWSCRUB_MASKING_STRATEGY"):
        merged.setdefault("locator", {})["masking_strategy"] = env[
            "PWSCRUB_MASKING_STRATEGY"
        ]
    if env.get("PWSCRUB_CUSTOM_MASK"):
        locator = merged.setdefault("locator", {})
        locator["custom_mask"] = env["PWSCRUB_CUSTOM_MASK"]
        locator.setdefault("masking_strategy", "custom")
    sensitive_fields = env.get("PWSCRUB_SENSITIVE_FIELDS")
    if sensitive_fields:
        fields = [field.strip() for field in sensitive_fields.split(",")]
        _extend_identifiers(merged.setdefault("locator", {}), fields)
    if env.get("PWSCRUB_RULES_FILE"):
        merged.setdefault("rules", {})["rules_file"] = env["PWSCRUB_RULES_FILE"]
    if env.get("PWSCRUB_SCRATCH_DIR"):
        merged.setdefault("discovery", {})["scratch_dir"] = env["PWSCRUB_SCRATCH_DIR"]


def _extend_identifiers(locator: dict[str, Any], extra: list[str]) -> None:
    if "sensitive_identifiers" not in locator:
        locator["sensitive_identifiers"] = list(EXTENDED_IDENTIFIERS)
    locator["sensitive_identifiers"] = [
        *locator["sensitive_identifiers"],
        *[field for field in extra if field],
    ]


def runtime_env(
    environ: Mapping[str, str] | None = None, *, filename: str = ".env"
) -> dict[str, str]:
    """Return the process environment layered over ``PWSCRUB_*`` keys from ``.env``.

    The file is looked up from cwd upwards. Exported variables always win, and
    ``PWSCRUB_DISABLE_DOTENV`` skips the file entirely.
    """
    process_env = dict(os.environ if environ is None else environ)
    if process_env.get(DISABLE_DOTENV_VAR, "").strip().lower() in _TRUTHY:
        return process_env
    dotenv_path = find_dotenv(filename=filename, usecwd=True)
    if not dotenv_path:
        return process_env
    from_file = {
        key: value
        for key, value in dotenv_values(dotenv_path).items()
        if key.startswith(ENV_PREFIX) and value is not None
    }
    return {**from_file, **process_env}


def load_settings(
    settings_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ScrubberSettings:
    """Load and validate scrubber settings.

    An explicit ``settings_path`` must exist. Without one, ``pwscrub.yaml`` in
    the working directory is used when present, else built-in defaults.
    Without ``env`` the process environment plus ``.env`` is used.
    """
    active_env = runtime_env() if env is None else env
    if settings_path is not None:
        raw = _load_yaml(settings_path)
    elif DEFAULT_SETTINGS_FILE.exists():
        raw = _load_yaml(DEFAULT_SETTINGS_FILE)
    else:
        raw = {}
    merged = apply_overrides(raw, active_env, cli_overrides)
    try:
        return ScrubberSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid scrubber settings: {exc}") from exc
