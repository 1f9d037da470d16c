"""Credential service: the operations exposed to the HTTP API and the CLI."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .auth import SessionTokenIssuer
from .cache import CachedCredentials, CredentialCache, DEFAULT_PROFILE, format_timestamp
from .config import Config, ConfigurationManager
from .environment import EnvironmentDetector, EnvironmentInfo
from .exceptions import CredentialsExpiredError
from .fileio import write_private_file
from .formatter import format_env_file, format_time_remaining
from .login import MFALoginOrchestrator
from .paths import PathResolver
from .probe import NativeProber, PlatformProber
from .profiles import ProfileCatalog, ProfileInfo
from .settings import Settings, SettingsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileStatus:
    """Authentication status of one profile."""
    profile: str
    authenticated: bool
    expiration: Optional[datetime] = None
    time_remaining: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"profile": self.profile, "authenticated": self.authenticated}
        if self.expiration is not None:
            data["expiration"] = format_timestamp(self.expiration)
        if self.time_remaining:
            data["timeRemaining"] = self.time_remaining
        return data


class CredentialService:
    """Wires settings, detection, profiles, cache and login together."""

    def __init__(self, config: Optional[Config] = None,
                 prober: Optional[PlatformProber] = None,
                 issuer: Optional[SessionTokenIssuer] = None,
                 cache: Optional[CredentialCache] = None):
        """
        Initialize credential service.

        Args:
            config: Application configuration (defaults when omitted)
            prober: Host prober (the real host when omitted)
            issuer: STS session token issuer (boto3 when omitted)
            cache: Credential cache (built from ``config`` when omitted)
        """
        self.config = config or ConfigurationManager.default_config()
        if prober is None:
            prober = NativeProber(timeout=self.config.detection.probe_timeout_seconds)

        self.settings_store = SettingsStore(self.config.cache.settings_file)
        self.detector = EnvironmentDetector(prober)
        self.resolver = PathResolver(self.settings_store, self.detector)
        self.catalog = ProfileCatalog(self.resolver, self.settings_store)
        self.cache = cache or CredentialCache(self.config.cache)
        self.orchestrator = MFALoginOrchestrator(
            self.catalog, self.cache, issuer,
            default_duration=self.config.login.default_duration,
        )

    def startup(self) -> None:
        """Prepare the cache directory and load settings once."""
        self.cache.ensure_directory()
        settings = self.settings_store.load()
        logger.info(f"Credential source: {settings.credential_source.value}")

    def environment(self) -> EnvironmentInfo:
        info = self.detector.detect()
        return info.with_active_source(self.settings_store.load().credential_source)

    def get_settings(self) -> Settings:
        return self.settings_store.load()

    def update_settings(self, settings: Settings) -> Settings:
        self.settings_store.save(settings)
        return settings

    def list_profiles(self) -> List[ProfileInfo]:
        return self.catalog.list_profiles()

    def status(self, profile: str) -> ProfileStatus:
        """
        Authentication status of a single profile.

        Missing, corrupt and expired cache entries all report
        ``authenticated=False`` without an expiration.
        """
        profile = profile or DEFAULT_PROFILE
        try:
            creds = self.cache.load_valid(profile)
        except ValueError as e:
            # Names such as "settings" can never have a cache file
            logger.debug(f"No cache lookup for profile '{profile}': {e}")
            creds = None
        return self._status_of(profile, creds)

    def all_status(self) -> List[ProfileStatus]:
        """Status of every MFA profile in the resolved config file."""
        return [self.status(p.name) for p in self.catalog.list_profiles()]

    def login(self, profile: str, token_code: str,
              duration_seconds: Optional[int] = None) -> ProfileStatus:
        creds = self.orchestrator.login(profile, token_code, duration_seconds)
        return self._status_of(creds.profile, creds)

    def get_credentials(self, profile: str) -> CachedCredentials:
        """
        Return usable cached credentials.

        Raises:
            CacheNotFoundError: If nothing (or a corrupt record) is cached
            CredentialsExpiredError: If the credentials are within the expiry buffer
        """
        profile = profile or DEFAULT_PROFILE
        creds = self.cache.load(profile)
        if not self.cache.is_valid(creds):
            raise CredentialsExpiredError(f"Credentials expired for profile: {profile}")
        return creds

    def env_file(self, profile: str) -> str:
        return format_env_file(self.get_credentials(profile))

    def export_env_file(self, profile: str, path: str) -> str:
        """
        Write the env file of ``profile`` to ``path`` with owner-only access.

        Returns:
            The path written

        Raises:
            ValueError: If no path is given
            OSError: If the file cannot be written
        """
        if not path:
            raise ValueError("Output path is required")
        write_private_file(path, self.env_file(profile))
        logger.info(f"Env file for profile '{profile or DEFAULT_PROFILE}' written to {path}")
        return path

    def clear(self, profile: Optional[str] = None) -> int:
        """
        Clear cached credentials for one profile, or all when none is given.

        Returns:
            Number of profiles cleared (or requested, for a single profile)
        """
        if not profile:
            return self.cache.clear_all()
        self.cache.clear(profile)
        return 1

    def _status_of(self, profile: str, creds: Optional[CachedCredentials]) -> ProfileStatus:
        if creds is None:
            return ProfileStatus(profile=profile, authenticated=False)
        return ProfileStatus(
            profile=profile,
            authenticated=True,
            expiration=creds.expiration,
            time_remaining=format_time_remaining(creds.expiration, self.cache.clock()),
        )
