"""Comprehension config loader.

Reads comprehension.config (YAML) from the project directory.
Caches result after first load. Call _reset_config() in tests.
"""

import copy
import os
import yaml

from comprehension_runtime.exceptions import ConfigError

_config = None

CONFIG_FILENAME = "comprehension.config"

ERROR_POLICIES = ("raise", "skip")

DEFAULTS = {
    "compiler": {
        "validate_scope": True,
        "builtins": True,
    },
    "runtime": {
        "on_error": "raise",
        "strict_guards": True,
    },
    "cli": {
        "take": 20,
    },
    "logging": {
        "level": "WARNING",
    },
}


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_BOOLEAN_SETTINGS = (
    ("compiler", "validate_scope"),
    ("compiler", "builtins"),
    ("runtime", "strict_guards"),
)


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate(config: dict) -> dict:
    for section in DEFAULTS:
        if not isinstance(config[section], dict):
            raise ConfigError(f"{section} must be a mapping, got {config[section]!r}")
    for section, key in _BOOLEAN_SETTINGS:
        if not isinstance(config[section][key], bool):
            raise ConfigError(f"{section}.{key} must be true or false, got {config[section][key]!r}")
    on_error = config["runtime"]["on_error"]
    if on_error not in ERROR_POLICIES:
        raise ConfigError(
            f"runtime.on_error must be one of {', '.join(ERROR_POLICIES)}, got {on_error!r}"
        )
    take = config["cli"]["take"]
    if not isinstance(take, int) or isinstance(take, bool) or take < 0:
        raise ConfigError(f"cli.take must be a non-negative integer, got {take!r}")
    level = config["logging"]["level"]
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
    return config


def merge_config(overrides: dict | None) -> dict:
    """Return a validated config: *overrides* deep-merged over a copy of DEFAULTS."""
    if overrides is None:
        return copy.deepcopy(DEFAULTS)
    if not isinstance(overrides, dict):
        raise ConfigError(f"Config must be a mapping, got {type(overrides).__name__}")
    return _validate(_deep_merge(copy.deepcopy(DEFAULTS), overrides))


def get_config(config_dir: str | None = None) -> dict:
    """Load and return the comprehension config, caching after first call."""
    global _config
    if _config is not None:
        return _config

    if config_dir is None:
        config_dir = os.getcwd()

    config_path = os.path.join(config_dir, CONFIG_FILENAME)

    if os.path.exists(config_path):
        with open(config_path) as f:
            try:
                user_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        _config = merge_config(user_config or None)
    else:
        _config = copy.deepcopy(DEFAULTS)

    return _config


def _reset_config():
    """Clear cached config. Call this in tests."""
    global _config
    _config = None
