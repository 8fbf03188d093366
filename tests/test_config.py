"""Tests for the optional YAML settings file."""

import pytest

from crypto_broker_cli.config import CliSettings, get_config_path, load_settings, load_yaml
from crypto_broker_cli.errors import ConfigurationError


def test_defaults_without_file() -> None:
    settings = load_settings()
    assert settings == CliSettings()
    assert settings.resource_attributes == {}
    assert settings.health_retry.max_attempts == 60
    assert settings.health_retry.attempt_timeout == 2.0
    assert settings.health_retry.retry_delay == 1.0


def test_explicit_path_wins_over_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("CRYPTO_BROKER_CLI_CONFIG", str(tmp_path / "env.yaml"))
    assert get_config_path(str(tmp_path / "flag.yaml")) == tmp_path / "flag.yaml"
    assert get_config_path(None) == tmp_path / "env.yaml"


def test_load_full_settings(tmp_path) -> None:
    path = tmp_path / "cli.yaml"
    path.write_text(
        """
resource:
  attributes:
    deployment.environment: staging
    build: 42
health:
  retry:
    max_attempts: 5
    attempt_timeout_ms: 500
    retry_delay_ms: 250
""",
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.resource_attributes == {"deployment.environment": "staging", "build": "42"}
    assert settings.health_retry.max_attempts == 5
    assert settings.health_retry.attempt_timeout == 0.5
    assert settings.health_retry.retry_delay == 0.25


def test_partial_retry_block_keeps_defaults(tmp_path) -> None:
    path = tmp_path / "cli.yaml"
    path.write_text("health:\n  retry:\n    max_attempts: 3\n", encoding="utf-8")
    retry = load_settings(str(path)).health_retry
    assert (retry.max_attempts, retry.attempt_timeout, retry.retry_delay) == (3, 2.0, 1.0)


def test_empty_file_is_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_yaml(path) == {}
    assert load_settings(str(path)) == CliSettings()


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "health:\n  retry:\n    max_attempts: 0\n",
        "health:\n  retry:\n    max_attempts: true\n",
        "health:\n  retry:\n    retry_delay_ms: fast\n",
        "health:\n  retry: [1, 2]\n",
        "resource:\n  attributes: [a, b]\n",
        "key: [unclosed\n",
    ],
)
def test_invalid_settings_raise(tmp_path, content: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_settings(str(path))


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="Could not read"):
        load_settings(str(tmp_path / "nope.yaml"))
