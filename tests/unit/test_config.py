"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from cerberus_client.core.config import CerberusConfig, LoggingConfig, RetryConfig
from cerberus_client.core.exceptions import ConfigurationError


def test_defaults():
    """Test configuration defaults."""
    config = CerberusConfig()
    assert config.url is None
    assert config.region is None
    assert config.timeout == 30.0
    assert config.retry == RetryConfig(max_attempts=3, base_interval=0.25)
    assert config.logging == LoggingConfig()
    assert config.default_headers == {}


def test_retry_config_validation():
    """Test retry config rejects non-positive attempts."""
    with pytest.raises(ValueError):
        RetryConfig(max_attempts=0)
    with pytest.raises(ValueError):
        RetryConfig(base_interval=-1)


def test_from_file(tmp_path: Path):
    """Test loading configuration from YAML."""
    config_file = tmp_path / "cerberus.yaml"
    config_file.write_text(
        yaml.safe_dump(
            {
                "url": "https://cerberus.example.com",
                "region": "us-west-2",
                "timeout": 10,
                "default_headers": {"X-Team": "platform"},
                "retry": {"max_attempts": 5, "base_interval": 0.5},
            }
        )
    )

    config = CerberusConfig.from_file(config_file)

    assert config.url == "https://cerberus.example.com"
    assert config.region == "us-west-2"
    assert config.timeout == 10.0
    assert config.default_headers == {"X-Team": "platform"}
    assert config.retry.max_attempts == 5


def test_from_file_empty(tmp_path: Path):
    """Test an empty file yields defaults."""
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert CerberusConfig.from_file(config_file) == CerberusConfig()


def test_from_file_missing(tmp_path: Path):
    """Test missing file raises ConfigurationError."""
    with pytest.raises(ConfigurationError, match="not found"):
        CerberusConfig.from_file(tmp_path / "missing.yaml")


def test_from_file_invalid_yaml(tmp_path: Path):
    """Test malformed YAML raises ConfigurationError."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("url: [unclosed")

    with pytest.raises(ConfigurationError, match="Failed to load"):
        CerberusConfig.from_file(config_file)


def test_from_file_invalid_values(tmp_path: Path):
    """Test schema violations raise ConfigurationError."""
    config_file = tmp_path / "invalid.yaml"
    config_file.write_text("timeout: -5\n")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        CerberusConfig.from_file(config_file)


def test_from_env(monkeypatch: pytest.MonkeyPatch):
    """Test environment variables populate the URL and region."""
    monkeypatch.setenv("CERBERUS_ADDR", "https://cerberus.example.com")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")

    config = CerberusConfig.from_env()

    assert config.url == "https://cerberus.example.com"
    assert config.region == "eu-west-1"


def test_from_env_region_precedence(monkeypatch: pytest.MonkeyPatch):
    """Test CERBERUS_REGION wins over the AWS variables."""
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("CERBERUS_REGION", "us-west-2")

    assert CerberusConfig.from_env().region == "us-west-2"


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch):
    """Test explicit overrides win and None overrides are ignored."""
    monkeypatch.setenv("CERBERUS_ADDR", "https://env.example.com")

    config = CerberusConfig.from_env(url="https://explicit.example.com", region=None)

    assert config.url == "https://explicit.example.com"
    assert config.region is None


def test_to_dict():
    """Test dictionary conversion."""
    data = CerberusConfig(url="https://cerberus.example.com").to_dict()
    assert data["url"] == "https://cerberus.example.com"
    assert data["retry"]["max_attempts"] == 3
