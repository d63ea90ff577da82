"""
Configuration — loads settings from .importmanager.yaml, environment variables,
and built-in defaults (in that priority order: env > YAML > defaults).
"""

from __future__ import annotations

import logging
import os

import yaml

logger = logging.getLogger(__name__)


_DEFAULTS = {
    "quote": '"',
    "id_scope": 1000,
    "warnings": True,
    "declarator": "const",
}

# Config file search locations
_CONFIG_FILENAMES = [".importmanager.yaml", ".importmanager.yml"]

_VALID_QUOTES = ('"', "'", "`")
_VALID_DECLARATORS = ("const", "let", "var")


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    # Search CWD first, then home directory
    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


class Config:
    """Import manager configuration.

    Settings are resolved in priority order:
    1. Environment variables (``IMPORT_MANAGER_*``)
    2. .importmanager.yaml config file
    3. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        # Quote character used when synthesizing module specifiers
        self.QUOTE = _get("IMPORT_MANAGER_QUOTE", "quote", _DEFAULTS["quote"])
        if self.QUOTE not in _VALID_QUOTES:
            logger.warning("Unsupported quote %r, using %r",
                           self.QUOTE, _DEFAULTS["quote"])
            self.QUOTE = _DEFAULTS["quote"]

        # Width of each kind's id range (module, dynamic, commonjs)
        self.ID_SCOPE = _get("IMPORT_MANAGER_ID_SCOPE", "id_scope",
                             _DEFAULTS["id_scope"], cast=int)
        if self.ID_SCOPE <= 0:
            self.ID_SCOPE = _DEFAULTS["id_scope"]

        self.WARNINGS = _get_bool("IMPORT_MANAGER_WARNINGS", "warnings",
                                  _DEFAULTS["warnings"])

        # Declarator keyword for synthesized dynamic/require statements
        self.DECLARATOR = _get("IMPORT_MANAGER_DECLARATOR", "declarator",
                               _DEFAULTS["declarator"])
        if self.DECLARATOR not in _VALID_DECLARATORS:
            logger.warning("Unsupported declarator %r, using %r",
                           self.DECLARATOR, _DEFAULTS["declarator"])
            self.DECLARATOR = _DEFAULTS["declarator"]

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
