"""Resolution of the effective AWS config and credentials file paths."""

import logging
import posixpath
from typing import Callable, Dict, Optional

from .environment import AWSPathInfo, EnvironmentDetector, HostState
from .settings import CredentialSource, Settings, SettingsStore

logger = logging.getLogger(__name__)


CONFIG = "config"
CREDENTIALS = "credentials"


# A rule returns a path for the requested file kind, or None to fall back
# to the native home directory.
Rule = Callable[[Settings, HostState, str], Optional[str]]


def _candidate_path(candidate: AWSPathInfo, kind: str) -> str:
    return candidate.config_path if kind == CONFIG else candidate.creds_path


class PathResolver:
    """Combines settings and host detection into one config/credentials pair.

    Nothing is cached: settings and the filesystem may change between calls,
    so every resolution probes the host again.
    """

    def __init__(self, settings_store: SettingsStore, detector: EnvironmentDetector):
        """
        Initialize path resolver.

        Args:
            settings_store: Source of the user's credential-source policy
            detector: Host environment detector
        """
        self.settings_store = settings_store
        self.detector = detector
        self._rules: Dict[CredentialSource, Rule] = {
            CredentialSource.CUSTOM: self._custom_path,
            CredentialSource.WINDOWS: self._windows_path,
            # linux and wsl2 both mean the native home directory
            CredentialSource.LINUX: self._native_path,
            CredentialSource.WSL2: self._native_path,
            CredentialSource.AUTO: self._auto_path,
        }

    def resolve_config_path(self) -> str:
        """Effective path of the AWS config file."""
        return self._resolve(CONFIG)

    def resolve_credentials_path(self) -> str:
        """Effective path of the AWS credentials file."""
        return self._resolve(CREDENTIALS)

    def _resolve(self, kind: str) -> str:
        settings = self.settings_store.load()
        state = self.detector.host_state()

        rule = self._rules.get(settings.credential_source)
        path = rule(settings, state, kind) if rule else None
        if not path:
            path = self._default_path(state, kind)

        logger.debug(f"Resolved AWS {kind} path ({settings.credential_source.value}): {path}")
        return path

    @staticmethod
    def _default_path(state: HostState, kind: str) -> str:
        return state.path_module.join(state.home_dir, ".aws", kind)

    @staticmethod
    def _custom_path(settings: Settings, state: HostState, kind: str) -> Optional[str]:
        return settings.custom_config_path if kind == CONFIG else settings.custom_creds_path

    @staticmethod
    def _windows_path(settings: Settings, state: HostState, kind: str) -> Optional[str]:
        if state.is_wsl2:
            if state.windows_home_dir:
                return posixpath.join(state.windows_home_dir, ".aws", kind)
            return None
        if state.system == "windows" and state.user_profile:
            return state.path_module.join(state.user_profile, ".aws", kind)
        return None

    @staticmethod
    def _native_path(settings: Settings, state: HostState, kind: str) -> Optional[str]:
        return None

    def _auto_path(self, settings: Settings, state: HostState, kind: str) -> Optional[str]:
        for candidate in self.detector.discover_paths(state):
            if candidate.exists:
                return _candidate_path(candidate, kind)
        return None
