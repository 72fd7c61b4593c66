"""Config providers: turn a Playwright config file into structured data.

The engine only needs the resolved structure. TypeScript and JavaScript
configs have to be executed to get it, which happens in a ``node`` child
process; JSON and YAML configs are parsed directly.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any, Protocol

import orjson
import yaml

from pwscrub.errors import ConfigError

LOGGER = logging.getLogger(__name__)

STRUCTURED_SUFFIXES = {".json", ".yaml", ".yml"}
NODE_SUFFIXES = {".js", ".cjs", ".mjs", ".ts", ".cts", ".mts"}
CONFIG_SENTINEL = "__PWSCRUB_CONFIG__"

_NODE_EVAL_SCRIPT = """
const configPath = process.argv[1];
(async () => {
  if (/\\.[cm]?ts$/.test(configPath)) {
    try { require('ts-node/register'); } catch (error) { /* node may strip types */ }
  }
  let loaded;
  try {
    loaded = require(configPath);
  } catch (error) {
    loaded = await import(require('url').pathToFileURL(configPath).href);
  }
  let config = (loaded && loaded.default) || loaded;
  if (config && config.default) {
    config = config.default;
  }
  process.stdout.write('\\n%s' + JSON.stringify(config) + '\\n');
})().catch((error) => {
  process.stderr.write(String((error && error.stack) || error));
  process.exit(1);
});
""".replace("%s", CONFIG_SENTINEL)


class ConfigProvider(Protocol):
    """Capability that yields the resolved config mapping for a config file."""

    def load(self, config_path: Path) -> dict[str, Any]:
        """Return the config structure; raise ``ConfigError`` on failure."""


class StructuredConfigProvider:
    """Parse JSON and YAML config files."""

    def load(self, config_path: Path) -> dict[str, Any]:
        _ensure_exists(config_path)
        suffix = config_path.suffix.lower()
        try:
            raw = config_path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"Config file could not be read: {config_path}: {exc}") from exc
        try:
            if suffix == ".json":
                data = orjson.loads(raw)
            elif suffix in {".yaml", ".yml"}:
                data = yaml.safe_load(raw.decode("utf-8")) or {}
            else:
                raise ConfigError(f"Unsupported config file extension: {suffix}")
        except (orjson.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to parse config {config_path}: {exc}") from exc
        return _ensure_mapping(data, config_path)


class NodeConfigProvider:
    """Evaluate JS/TS configs with node and read back their JSON form."""

    def __init__(self, *, node_binary: str = "node", timeout_seconds: int = 60) -> None:
        self.node_binary = node_binary
        self.timeout_seconds = timeout_seconds

    def load(self, config_path: Path) -> dict[str, Any]:
        _ensure_exists(config_path)
        resolved = config_path.resolve()
        cmd = [self.node_binary, "-e", _NODE_EVAL_SCRIPT, str(resolved)]
        LOGGER.debug("Evaluating Playwright config with node: %s", resolved)
        try:
            result = subprocess.run(
                cmd,
                cwd=resolved.parent,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise ConfigError(
                f"'{self.node_binary}' is required to evaluate {config_path.name}"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ConfigError(
                f"Evaluating {config_path} timed out after {self.timeout_seconds}s"
            ) from exc
        if result.returncode != 0:
            raise ConfigError(
                f"Failed to evaluate config {config_path}: {result.stderr.strip()}"
            )
        return _ensure_mapping(_parse_node_output(result.stdout, config_path), config_path)


class DefaultConfigProvider:
    """Dispatch on the config file extension."""

    def __init__(
        self,
        *,
        structured: StructuredConfigProvider | None = None,
        node: NodeConfigProvider | None = None,
    ) -> None:
        self.structured = structured or StructuredConfigProvider()
        self.node = node or NodeConfigProvider()

    def load(self, config_path: Path) -> dict[str, Any]:
        _ensure_exists(config_path)
        suffix = config_path.suffix.lower()
        if suffix in STRUCTURED_SUFFIXES:
            return self.structured.load(config_path)
        if suffix in NODE_SUFFIXES:
            return self.node.load(config_path)
        raise ConfigError(f"Unsupported config file extension: {suffix or '<none>'}")


class StaticConfigProvider:
    """Serve an already-resolved config, e.g. one handed over by a test runner hook."""

    def __init__(self, config: dict[str, Any]) -> None:
        self._config = dict(config)

    def load(self, config_path: Path) -> dict[str, Any]:
        del config_path
        return dict(self._config)


def _parse_node_output(stdout: str, config_path: Path) -> Any:
    marker = stdout.rfind(CONFIG_SENTINEL)
    if marker == -1:
        raise ConfigError(f"Config evaluation produced no output: {config_path}")
    payload = stdout[marker + len(CONFIG_SENTINEL) :].strip()
    try:
        return orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise ConfigError(f"Config evaluation output is not JSON: {exc}") from exc


def _ensure_exists(config_path: Path) -> None:
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")


def _ensure_mapping(data: Any, config_path: Path) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must resolve to an object")
    return data
