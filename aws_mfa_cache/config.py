"""Configuration management for the AWS MFA credential cache."""

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from .exceptions import ConfigurationError


DEFAULT_CACHE_DIRECTORY = os.path.join("~", ".docker", "aws-mfa-cache")
DEFAULT_SOCKET = "/run/guest-services/backend.sock"
SETTINGS_FILENAME = "settings.json"


@dataclass
class CacheConfig:
    """Credential cache configuration."""
    directory: str = DEFAULT_CACHE_DIRECTORY
    expiry_buffer_seconds: int = 300

    @property
    def path(self) -> str:
        """Cache directory with ``~`` expanded."""
        return os.path.expanduser(self.directory)

    @property
    def settings_file(self) -> str:
        return os.path.join(self.path, SETTINGS_FILENAME)


@dataclass
class LoginConfig:
    """MFA login defaults."""
    default_duration: int = 43200  # 12 hours


@dataclass
class DetectionConfig:
    """Environment probe configuration."""
    probe_timeout_seconds: float = 10.0


@dataclass
class ServerConfig:
    """HTTP server settings."""
    socket: Optional[str] = DEFAULT_SOCKET
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class Config:
    """Main configuration object."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    login: LoginConfig = field(default_factory=LoginConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


class ConfigurationManager:
    """Manages configuration file loading and validation."""

    @staticmethod
    def default_config() -> Config:
        """Configuration used when no file is given."""
        return Config()

    @staticmethod
    def load_config(file_path: Optional[str]) -> Config:
        """
        Load and parse configuration file.

        Args:
            file_path: Path to YAML configuration file, or None for defaults

        Returns:
            Config object with validated settings

        Raises:
            ConfigurationError: If file is missing, invalid, or has bad values
        """
        if file_path is None:
            return ConfigurationManager.default_config()

        if not os.path.exists(file_path):
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML syntax in configuration file: {file_path}"
            if hasattr(e, 'problem_mark'):
                mark = e.problem_mark
                error_msg += f" (line {mark.line + 1}, column {mark.column + 1})"
            if hasattr(e, 'problem'):
                error_msg += f"\n{e.problem}"
            raise ConfigurationError(error_msg) from e
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {file_path}: {str(e)}") from e

        # An empty file means "all defaults"
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a YAML object/dictionary")

        return Config(
            cache=ConfigurationManager._parse_cache_config(data),
            login=ConfigurationManager._parse_login_config(data),
            detection=ConfigurationManager._parse_detection_config(data),
            server=ConfigurationManager._parse_server_config(data),
        )

    @staticmethod
    def _section(data: dict, name: str) -> dict:
        section = data.get(name)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Section '{name}' must be an object/dictionary")
        return section

    @staticmethod
    def _parse_cache_config(data: dict) -> CacheConfig:
        """Parse cache configuration section."""
        cache_data = ConfigurationManager._section(data, 'cache')

        directory = cache_data.get('directory', DEFAULT_CACHE_DIRECTORY)
        buffer_seconds = cache_data.get('expiry_buffer_seconds', 300)

        if not directory or not isinstance(directory, str):
            raise ConfigurationError("Field 'cache.directory' must be a non-empty string")
        if isinstance(buffer_seconds, bool) or not isinstance(buffer_seconds, int) or buffer_seconds < 0:
            raise ConfigurationError("Field 'cache.expiry_buffer_seconds' must be a non-negative integer")

        return CacheConfig(directory=directory, expiry_buffer_seconds=buffer_seconds)

    @staticmethod
    def _parse_login_config(data: dict) -> LoginConfig:
        """Parse login configuration section."""
        login_data = ConfigurationManager._section(data, 'login')

        duration = login_data.get('default_duration', 43200)
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ConfigurationError("Field 'login.default_duration' must be a positive integer")

        return LoginConfig(default_duration=duration)

    @staticmethod
    def _parse_detection_config(data: dict) -> DetectionConfig:
        """Parse detection configuration section."""
        detection_data = ConfigurationManager._section(data, 'detection')

        timeout = detection_data.get('probe_timeout_seconds', 10.0)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError("Field 'detection.probe_timeout_seconds' must be a positive number")

        return DetectionConfig(probe_timeout_seconds=float(timeout))

    @staticmethod
    def _parse_server_config(data: dict) -> ServerConfig:
        """Parse server configuration section."""
        server_data = ConfigurationManager._section(data, 'server')

        socket_path = server_data.get('socket', DEFAULT_SOCKET)
        host = server_data.get('host', '127.0.0.1')
        port = server_data.get('port', 8080)

        if socket_path is not None and not isinstance(socket_path, str):
            raise ConfigurationError("Field 'server.socket' must be a string or null")
        if not host or not isinstance(host, str):
            raise ConfigurationError("Field 'server.host' must be a non-empty string")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError("Field 'server.port' must be an integer between 1 and 65535")

        return ServerConfig(socket=socket_path or None, host=host, port=port)
