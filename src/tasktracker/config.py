"""tasktracker configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (TASKTRACKER_DIR, TASKTRACKER_EMBEDDING_MODEL)
  3. Per-project tasktracker.yaml  (in the working directory)
  4. Global ~/.tasktracker/config.yaml  (defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tasktracker.search.ranking import DEFAULT_LIMIT, DEFAULT_THRESHOLD

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".tasktracker"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "tasktracker.yaml"

# Fields that suggest an API key — forbidden in global config.
# Does NOT match legitimate config keys like num_retries or timeout.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # access_token, auth_token (suffix)
    r"|^token$"                  # exactly "token" (standalone)
    r"|_secret$"                 # client_secret (suffix)
    r"|^secret$"                 # exactly "secret" (standalone)
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

# Known top-level sections — unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["storage", "embedding", "search"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StorageCfg:
    """Task directory (tasktracker.yaml: storage:)."""

    dir: str = ".tasks"


@dataclass
class EmbeddingCfg:
    """Embedding provider configuration (tasktracker.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        timeout: Per-call timeout in seconds.
        num_retries: LiteLLM transport retries on transient errors.
        api_base: Optional endpoint override (e.g. remote Ollama host).
    """

    model: str = "ollama/nomic-embed-text"
    timeout: float = 60.0
    num_retries: int = 3
    api_base: str | None = None


@dataclass
class SearchCfg:
    """Ranking configuration (tasktracker.yaml: search:)."""

    threshold: float = DEFAULT_THRESHOLD
    limit: int = DEFAULT_LIMIT


@dataclass
class TrackerConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    storage: StorageCfg = field(default_factory=StorageCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    search: SearchCfg = field(default_factory=SearchCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: TrackerConfig) -> None:
    if not 0.0 <= cfg.search.threshold < 1.0:
        raise ConfigError(
            f"search.threshold must be in [0, 1), got {cfg.search.threshold}"
        )
    if cfg.search.limit < 1:
        raise ConfigError(f"search.limit must be >= 1, got {cfg.search.limit}")
    if cfg.embedding.timeout <= 0:
        raise ConfigError(f"embedding.timeout must be > 0, got {cfg.embedding.timeout}")
    if cfg.embedding.num_retries < 0:
        raise ConfigError(
            f"embedding.num_retries must be >= 0, got {cfg.embedding.num_retries}"
        )
    if not cfg.storage.dir:
        raise ConfigError("storage.dir must not be empty")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> TrackerConfig:
    """Build a *TrackerConfig* from a merged raw YAML dict."""
    cfg = TrackerConfig()

    try:
        if "storage" in data:
            s = data["storage"] or {}
            cfg.storage = StorageCfg(dir=str(s.get("dir", cfg.storage.dir)))

        if "embedding" in data:
            e = data["embedding"] or {}
            cfg.embedding = EmbeddingCfg(
                model=str(e.get("model", cfg.embedding.model)),
                timeout=float(e.get("timeout", cfg.embedding.timeout)),
                num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
                api_base=e.get("api_base") or cfg.embedding.api_base,
            )

        if "search" in data:
            sr = data["search"] or {}
            cfg.search = SearchCfg(
                threshold=float(sr.get("threshold", cfg.search.threshold)),
                limit=int(sr.get("limit", cfg.search.limit)),
            )
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: TrackerConfig) -> TrackerConfig:
    """Apply TASKTRACKER_* environment variable overrides (layer 2)."""
    if directory := os.environ.get("TASKTRACKER_DIR"):
        cfg.storage.dir = directory
    if model := os.environ.get("TASKTRACKER_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping.")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> TrackerConfig:
    """Load and return a merged *TrackerConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *tasktracker.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file is malformed, the global config contains
            API-key-like fields, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg
