"""Artifact discovery from a resolved Playwright config."""

from pwscrub.discovery.finder import ArtifactFinder
from pwscrub.discovery.paths import (
    ArtifactPaths,
    html_report_folder,
    resolve_artifact_paths,
    trace_enabled,
)
from pwscrub.discovery.providers import (
    ConfigProvider,
    DefaultConfigProvider,
    NodeConfigProvider,
    StaticConfigProvider,
    StructuredConfigProvider,
)

__all__ = [
    "ArtifactFinder",
    "ArtifactPaths",
    "ConfigProvider",
    "DefaultConfigProvider",
    "NodeConfigProvider",
    "StaticConfigProvider",
    "StructuredConfigProvider",
    "html_report_folder",
    "resolve_artifact_paths",
    "trace_enabled",
]
