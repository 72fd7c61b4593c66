"""Configuration exports."""

from pwscrub.config.loader import DEFAULT_SETTINGS_FILE, load_settings, runtime_env
from pwscrub.config.models import (
    CustomRuleConfig,
    DiscoveryConfig,
    LocatorRuleConfig,
    RuleSourcesConfig,
    ScrubberSettings,
)

__all__ = [
    "CustomRuleConfig",
    "DEFAULT_SETTINGS_FILE",
    "DiscoveryConfig",
    "LocatorRuleConfig",
    "RuleSourcesConfig",
    "ScrubberSettings",
    "load_settings",
    "runtime_env",
]
