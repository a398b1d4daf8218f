"""Configuration loader for Vigil."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

# Mapping of environment variable names to config api_keys entries.
# Later entries win when several variables map to the same key.
_ENV_KEY_MAP: list[tuple[str, str]] = [
    ("VIRUSTOTAL_API_KEY", "virustotal"),
    ("VT_API_KEY", "virustotal"),
    ("TRIAGE_API_KEY", "triage"),
    ("OPENAI_API_KEY", "ai"),
    ("AI_API_KEY", "ai"),
    ("TELEGRAM_BOT_TOKEN", "telegram"),
    ("TELEGRAM_WEBHOOK_SECRET", "telegram_secret"),
]

_POSSIBLE_CONFIG_PATHS = [
    Path("/app/config/default.yaml"),  # Docker container path
    Path(__file__).resolve().parent.parent.parent / "config" / "default.yaml",  # Source repo path
    Path.cwd() / "config" / "default.yaml",  # Current working directory
]

DEFAULT_CONFIG_PATH = next(
    (p for p in _POSSIBLE_CONFIG_PATHS if p.exists()),
    _POSSIBLE_CONFIG_PATHS[0],
)

# Used when no default.yaml is available (e.g. installed as a wheel).
_BUILTIN_DEFAULTS: dict[str, Any] = {
    "api_keys": {},
    "requests": {"timeout": 15},
    "ai": {
        "api_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-3.5-turbo",
        "timeout": 30,
    },
    "limits": {"max_upload_bytes": 32 * 1024 * 1024},
    "store": {"ttl_seconds": 600},
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Load configuration from YAML files and the environment.

    Loads the default config, then merges a local override file
    (config/local.yaml) and a user-specified config path on top.
    API keys from the environment are applied last.

    This is the only place that reads the process environment; the
    returned dict is passed explicitly to every other component.

    Args:
        config_path: Optional path to a config YAML file. If provided,
            it is merged on top of the default config.
        environ: Environment mapping to read keys from. Defaults to
            ``os.environ``.

    Returns:
        Merged configuration dictionary.
    """
    config = copy.deepcopy(_BUILTIN_DEFAULTS)

    if DEFAULT_CONFIG_PATH.exists():
        config = _deep_merge(config, _read_yaml(DEFAULT_CONFIG_PATH))

        local_path = DEFAULT_CONFIG_PATH.parent / "local.yaml"
        if local_path.exists():
            config = _deep_merge(config, _read_yaml(local_path))

    if config_path is not None:
        user_path = Path(config_path)
        if user_path.exists():
            config = _deep_merge(config, _read_yaml(user_path))

    env = os.environ if environ is None else environ
    api_keys = config.get("api_keys") or {}
    config["api_keys"] = api_keys
    for env_var, key_name in _ENV_KEY_MAP:
        value = env.get(env_var, "")
        if value:
            api_keys[key_name] = value

    return config


def get_api_key(config: dict[str, Any], name: str) -> str:
    """Retrieve an API key from config, returning empty string if missing.

    Args:
        config: The loaded configuration dictionary.
        name: Name of the credential (e.g., 'virustotal', 'ai').

    Returns:
        The API key string, or empty string if not configured.
    """
    return (config.get("api_keys") or {}).get(name) or ""


def key_status(config: dict[str, Any]) -> dict[str, bool]:
    """Report which named credentials are present."""
    return {
        name: bool(get_api_key(config, name))
        for name in ("virustotal", "triage", "ai", "telegram")
    }
