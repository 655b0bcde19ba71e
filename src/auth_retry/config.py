"""Coordinator configuration from YAML, dicts or environment variables.

YAML files may hold the settings at top level or under an ``auth_retry:``
section:

    auth_retry:
      name: billing_api
      max_queue_size: ${AUTH_RETRY_MAX_QUEUE_SIZE:-50}
      log_level: DEBUG
      json_logs: true

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
"""

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from auth_retry.exceptions import InvalidConfigurationError
from auth_retry.queue import DEFAULT_MAX_QUEUE_SIZE, validate_max_size

logger = logging.getLogger(__name__)

CONFIG_SECTION = "auth_retry"
DEFAULT_ENV_PREFIX = "AUTH_RETRY_"

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidConfigurationError(
            f"{field_name} must be an integer, got {value!r}"
        ) from None


@dataclass
class AuthRetryConfig:
    """
    Refresh coordinator configuration.

    Attributes:
        name: Label for the coordinator in log records
        max_queue_size: Maximum number of callers waiting on one refresh
        log_level: Level for the auth_retry logger
        json_logs: Emit JSON log lines instead of console text
    """

    name: str = "default"
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    log_level: str = "INFO"
    json_logs: bool = False

    def validate(self) -> "AuthRetryConfig":
        """
        Check values and normalise log_level to upper case.

        Raises:
            InvalidConfigurationError: If any value is invalid
        """
        validate_max_size(self.max_queue_size)

        self.log_level = str(self.log_level).upper()
        if self.log_level not in _VALID_LOG_LEVELS:
            raise InvalidConfigurationError(
                f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}, "
                f"got {self.log_level!r}"
            )

        if not self.name:
            raise InvalidConfigurationError("name must not be empty")

        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthRetryConfig":
        """
        Build config from a dict, ignoring unknown keys.

        Values may be strings (as produced by env expansion); they are
        converted to the field types.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.debug(f"Ignoring unknown auth_retry config keys: {unknown}")

        kwargs: Dict[str, Any] = {}
        if "name" in data:
            kwargs["name"] = str(data["name"])
        if "max_queue_size" in data:
            kwargs["max_queue_size"] = _to_int(data["max_queue_size"], "max_queue_size")
        if "log_level" in data:
            kwargs["log_level"] = str(data["log_level"])
        if "json_logs" in data:
            kwargs["json_logs"] = _to_bool(data["json_logs"])

        return cls(**kwargs).validate()

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "AuthRetryConfig":
        """
        Build config from environment variables.

        Reads {prefix}NAME, {prefix}MAX_QUEUE_SIZE, {prefix}LOG_LEVEL and
        {prefix}JSON_LOGS; unset variables keep their defaults.
        """
        data = {}
        for f in fields(cls):
            value = os.getenv(f"{prefix}{f.name.upper()}")
            if value is not None:
                data[f.name] = value
        return cls.from_dict(data)


def load_config(path: Path | str) -> AuthRetryConfig:
    """
    Load coordinator config from a YAML file.

    Missing file means defaults. Settings are read from the auth_retry:
    section when present, otherwise from the top level.

    Raises:
        InvalidConfigurationError: If the file content is not a mapping or
            holds invalid values
    """
    path = Path(path)
    raw = load_yaml(path)
    if not isinstance(raw, dict):
        raise InvalidConfigurationError(f"Config file {path} must contain a mapping")

    section = raw.get(CONFIG_SECTION, raw)
    if not isinstance(section, dict):
        raise InvalidConfigurationError(
            f"'{CONFIG_SECTION}' section in {path} must be a mapping"
        )

    config = AuthRetryConfig.from_dict(_expand_env_vars(section))
    logger.debug(
        f"Loaded auth_retry config from {path}",
        extra={"max_queue_size": config.max_queue_size},
    )
    return config


__all__ = ["AuthRetryConfig", "load_config", "load_yaml", "CONFIG_SECTION"]
