"""
Optional settings file for the CLI.

Settings live in a YAML file named by --config or CRYPTO_BROKER_CLI_CONFIG.
When neither is set the built-in defaults apply. The file may extend the
tracer resource attributes and tune the health check retry policy:

    resource:
      attributes:
        deployment.environment: staging
    health:
      retry:
        max_attempts: 60
        attempt_timeout_ms: 2000
        retry_delay_ms: 1000
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .defaults import (
    ENV_CLI_CONFIG,
    HEALTH_ATTEMPT_TIMEOUT_MS,
    HEALTH_RETRY_DELAY_MS,
    MAX_HEALTH_RETRY_ATTEMPTS,
)
from .errors import ConfigurationError
from .runtime.connector import RetryPolicy


@dataclass(frozen=True)
class CliSettings:
    """Settings resolved from the optional YAML file."""

    resource_attributes: dict[str, str] = field(default_factory=dict)
    health_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(
            max_attempts=MAX_HEALTH_RETRY_ATTEMPTS,
            attempt_timeout=HEALTH_ATTEMPT_TIMEOUT_MS / 1000.0,
            retry_delay=HEALTH_RETRY_DELAY_MS / 1000.0,
        )
    )


def get_config_path(explicit: str | None = None) -> Path | None:
    """Return the settings file path: explicit value, then CRYPTO_BROKER_CLI_CONFIG, else None."""
    raw = (explicit or "").strip() or os.environ.get(ENV_CLI_CONFIG, "").strip()
    if not raw:
        return None
    return Path(raw).expanduser()


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Could not read settings file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Settings file {path} is not valid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def _positive_int(block: dict[str, Any], key: str, default: int) -> int:
    value = block.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"health.retry.{key} must be a positive integer, got {value!r}")
    return value


def _parse_resource_attributes(data: dict[str, Any]) -> dict[str, str]:
    block = data.get("resource") or {}
    raw = block.get("attributes") if isinstance(block, dict) else None
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError("resource.attributes must be a mapping")
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def _parse_health_retry(data: dict[str, Any]) -> RetryPolicy:
    health = data.get("health") or {}
    block = health.get("retry") if isinstance(health, dict) else None
    if block is None:
        block = {}
    if not isinstance(block, dict):
        raise ConfigurationError("health.retry must be a mapping")
    return RetryPolicy(
        max_attempts=_positive_int(block, "max_attempts", MAX_HEALTH_RETRY_ATTEMPTS),
        attempt_timeout=_positive_int(block, "attempt_timeout_ms", HEALTH_ATTEMPT_TIMEOUT_MS)
        / 1000.0,
        retry_delay=_positive_int(block, "retry_delay_ms", HEALTH_RETRY_DELAY_MS) / 1000.0,
    )


def load_settings(explicit_path: str | None = None) -> CliSettings:
    """
    Resolve CLI settings.

    Args:
        explicit_path: Path given on the command line; overrides CRYPTO_BROKER_CLI_CONFIG.

    Returns:
        CliSettings with defaults for anything the file leaves out.

    Raises:
        ConfigurationError: if the file cannot be read or holds invalid values.
    """
    path = get_config_path(explicit_path)
    if path is None:
        return CliSettings()
    data = load_yaml(path)
    return CliSettings(
        resource_attributes=_parse_resource_attributes(data),
        health_retry=_parse_health_retry(data),
    )
