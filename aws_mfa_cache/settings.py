"""Persisted credential-source settings."""

import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import SettingsWriteError
from .fileio import write_private_json

logger = logging.getLogger(__name__)


class CredentialSource(str, Enum):
    """Where the AWS config/credentials files are looked up."""
    AUTO = "auto"
    LINUX = "linux"
    WSL2 = "wsl2"
    WINDOWS = "windows"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Settings:
    """User's credential-source policy."""
    credential_source: CredentialSource = CredentialSource.AUTO
    custom_config_path: str = ""
    custom_creds_path: str = ""
    wsl2_distro: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """
        Build settings from their JSON form.

        Args:
            data: Mapping with camelCase keys as stored on disk

        Returns:
            Settings instance

        Raises:
            ValueError: If the mapping is malformed or names an unknown source
        """
        if not isinstance(data, dict):
            raise ValueError("Settings must be a JSON object")

        source = data.get("credentialSource") or CredentialSource.AUTO.value
        try:
            credential_source = CredentialSource(source)
        except ValueError:
            valid = ", ".join(s.value for s in CredentialSource)
            raise ValueError(f"Invalid credentialSource '{source}'. Must be one of: {valid}") from None

        values = {}
        for key in ("customConfigPath", "customCredsPath", "wsl2Distro"):
            value = data.get(key) or ""
            if not isinstance(value, str):
                raise ValueError(f"Field '{key}' must be a string")
            values[key] = value

        return cls(
            credential_source=credential_source,
            custom_config_path=values["customConfigPath"],
            custom_creds_path=values["customCredsPath"],
            wsl2_distro=values["wsl2Distro"],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"credentialSource": self.credential_source.value}
        if self.custom_config_path:
            data["customConfigPath"] = self.custom_config_path
        if self.custom_creds_path:
            data["customCredsPath"] = self.custom_creds_path
        if self.wsl2_distro:
            data["wsl2Distro"] = self.wsl2_distro
        return data


class SettingsStore:
    """Loads and saves settings, keeping the last known value in memory.

    One store is created per process and handed to every component that
    needs settings. The cached value is guarded by a lock so a ``save`` is
    visible to every later ``load`` without rereading the file.
    """

    def __init__(self, settings_file: str):
        """
        Initialize settings store.

        Args:
            settings_file: Path of the JSON settings file
        """
        self.settings_file = settings_file
        self._lock = threading.Lock()
        self._settings: Optional[Settings] = None

    def load(self) -> Settings:
        """
        Return current settings, reading the file on first use only.

        A missing or unreadable file yields default settings.
        """
        with self._lock:
            if self._settings is None:
                self._settings = self._read()
            return self._settings

    def save(self, settings: Settings) -> None:
        """
        Persist settings and make them current.

        Args:
            settings: New settings

        Raises:
            SettingsWriteError: If the file cannot be written
        """
        with self._lock:
            try:
                write_private_json(self.settings_file, settings.to_dict())
            except OSError as e:
                raise SettingsWriteError(
                    f"Failed to save settings to {self.settings_file}: {str(e)}"
                ) from e
            self._settings = settings
        logger.info(f"Settings saved: credential source '{settings.credential_source.value}'")

    def reload(self) -> Settings:
        """Forget the cached value and read the file again."""
        with self._lock:
            self._settings = None
        return self.load()

    def _read(self) -> Settings:
        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No settings file at {self.settings_file}, using defaults")
            return Settings()
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read settings file {self.settings_file}: {e}")
            return Settings()

        try:
            return Settings.from_dict(data)
        except ValueError as e:
            logger.warning(f"Ignoring invalid settings file {self.settings_file}: {e}")
            return Settings()
