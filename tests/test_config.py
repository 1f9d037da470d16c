"""Unit tests for configuration management."""

import os
import tempfile

import pytest

from aws_mfa_cache.config import (
    CacheConfig,
    Config,
    ConfigurationManager,
    DEFAULT_SOCKET,
    DetectionConfig,
    LoginConfig,
    ServerConfig,
)
from aws_mfa_cache.exceptions import ConfigurationError


def load_from_text(config_content):
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(config_content)
        temp_path = f.name

    try:
        return ConfigurationManager.load_config(temp_path)
    finally:
        os.unlink(temp_path)


def test_cache_config_defaults():
    """Test CacheConfig with default values."""
    cache_config = CacheConfig()
    assert cache_config.directory == os.path.join("~", ".docker", "aws-mfa-cache")
    assert cache_config.expiry_buffer_seconds == 300
    assert cache_config.path == os.path.expanduser("~/.docker/aws-mfa-cache")
    assert cache_config.settings_file.endswith(os.path.join("aws-mfa-cache", "settings.json"))


def test_default_config():
    """Test the configuration used without a file."""
    config = ConfigurationManager.load_config(None)

    assert config == Config()
    assert config.login.default_duration == 43200
    assert config.detection.probe_timeout_seconds == 10.0
    assert config.server.socket == DEFAULT_SOCKET
    assert config.server.host == "127.0.0.1"
    assert config.server.port == 8080


def test_load_config_success():
    """Test successful configuration loading."""
    config = load_from_text("""
cache:
  directory: /var/cache/aws-mfa
  expiry_buffer_seconds: 60

login:
  default_duration: 3600

detection:
  probe_timeout_seconds: 2

server:
  socket: /tmp/backend.sock
  host: 0.0.0.0
  port: 9090
""")

    assert config.cache == CacheConfig(directory="/var/cache/aws-mfa", expiry_buffer_seconds=60)
    assert config.login == LoginConfig(default_duration=3600)
    assert config.detection == DetectionConfig(probe_timeout_seconds=2.0)
    assert config.server == ServerConfig(socket="/tmp/backend.sock", host="0.0.0.0", port=9090)


def test_load_config_partial_sections_use_defaults():
    """Test configuration loading with default values for omitted fields."""
    config = load_from_text("""
login:
  default_duration: 900
""")

    assert config.login.default_duration == 900
    assert config.cache == CacheConfig()
    assert config.server == ServerConfig()


def test_load_config_null_socket_disables_unix_socket():
    config = load_from_text("server:\n  socket: null\n")
    assert config.server.socket is None


def test_load_config_empty_file():
    """Test that an empty file yields all defaults."""
    assert load_from_text("") == Config()


def test_load_config_file_not_found():
    """Test error handling when configuration file is missing."""
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigurationManager.load_config("/nonexistent/path/config.yaml")

    assert "Configuration file not found" in str(exc_info.value)
    assert "/nonexistent/path/config.yaml" in str(exc_info.value)


def test_load_config_invalid_yaml_syntax():
    """Test error handling for invalid YAML syntax."""
    with pytest.raises(ConfigurationError) as exc_info:
        load_from_text("""
cache:
  directory: [invalid yaml syntax here
""")

    assert "Invalid YAML syntax" in str(exc_info.value)
    assert "line" in str(exc_info.value).lower()


def test_load_config_not_a_dictionary():
    """Test error handling when the document is a list."""
    with pytest.raises(ConfigurationError, match="YAML object/dictionary"):
        load_from_text("- cache\n- login\n")


def test_load_config_section_not_a_dictionary():
    with pytest.raises(ConfigurationError, match="Section 'cache'"):
        load_from_text("cache: /tmp\n")


@pytest.mark.parametrize("content, field", [
    ("cache:\n  directory: ''\n", "cache.directory"),
    ("cache:\n  directory: 42\n", "cache.directory"),
    ("cache:\n  expiry_buffer_seconds: -1\n", "cache.expiry_buffer_seconds"),
    ("cache:\n  expiry_buffer_seconds: true\n", "cache.expiry_buffer_seconds"),
    ("login:\n  default_duration: 0\n", "login.default_duration"),
    ("login:\n  default_duration: '12h'\n", "login.default_duration"),
    ("detection:\n  probe_timeout_seconds: 0\n", "detection.probe_timeout_seconds"),
    ("server:\n  socket: 5\n", "server.socket"),
    ("server:\n  host: ''\n", "server.host"),
    ("server:\n  port: 70000\n", "server.port"),
    ("server:\n  port: '8080'\n", "server.port"),
])
def test_load_config_invalid_values(content, field):
    """Test each validated field names itself in the error."""
    with pytest.raises(ConfigurationError) as exc_info:
        load_from_text(content)

    assert field in str(exc_info.value)
