"""MFA login: turn a one-time code into cached session credentials."""

import logging
import threading
import weakref
from typing import Optional

from .auth import SessionTokenIssuer, StsSessionTokenIssuer
from .cache import CachedCredentials, CredentialCache, DEFAULT_PROFILE
from .exceptions import AuthenticationError, CacheWriteError
from .profiles import ProfileCatalog

logger = logging.getLogger(__name__)


DEFAULT_DURATION_SECONDS = 43200  # 12 hours


class MFALoginOrchestrator:
    """Resolves a profile's MFA setup, calls STS and caches the result."""

    def __init__(self, catalog: ProfileCatalog, cache: CredentialCache,
                 issuer: Optional[SessionTokenIssuer] = None,
                 default_duration: int = DEFAULT_DURATION_SECONDS):
        """
        Initialize login orchestrator.

        Args:
            catalog: Profile catalog for MFA serials and base credentials
            cache: Credential cache receiving issued credentials
            issuer: STS session token issuer (defaults to boto3)
            default_duration: Lifetime requested when the caller gives none
        """
        self.catalog = catalog
        self.cache = cache
        self.issuer = issuer or StsSessionTokenIssuer()
        self.default_duration = default_duration
        # Entries vanish once no login holds them
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _profile_lock(self, profile: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(profile, threading.Lock())

    def login(self, profile: str, token_code: str,
              duration_seconds: Optional[int] = None) -> CachedCredentials:
        """
        Authenticate ``profile`` with an MFA code and cache the credentials.

        Logins for the same profile run one at a time; the last one to
        finish owns the cache file.

        Args:
            profile: Profile name; empty means ``default``
            token_code: One-time code from the MFA device
            duration_seconds: Requested lifetime (default 12 hours)

        Returns:
            The newly cached credentials

        Raises:
            ValueError: If no token code is given
            ConfigUnreadableError: If an AWS file cannot be read
            ProfileNotFoundError: If the profile is unknown
            NoMFAConfiguredError: If the profile has no MFA device
            MissingCredentialsError: If base credentials are incomplete
            AuthenticationError: If STS rejects the request
            CacheWriteError: If credentials were issued but not stored
        """
        profile = profile or DEFAULT_PROFILE
        if not token_code:
            raise ValueError("Token code is required")
        if not duration_seconds:
            duration_seconds = self.default_duration

        # Reject names the cache cannot store before spending the MFA code
        self.cache.get_cache_filename(profile)

        with self._profile_lock(profile):
            mfa_serial = self.catalog.resolve_mfa_serial(profile)
            access_key, secret_key = self.catalog.resolve_base_credentials(profile)
            region = self.catalog.resolve_region(profile)

            logger.info(f"Requesting session token for profile '{profile}' ({duration_seconds}s)")
            try:
                token = self.issuer.get_session_token(
                    access_key, secret_key, mfa_serial, token_code, duration_seconds,
                    region=region,
                )
            except AuthenticationError:
                raise
            except Exception as e:
                raise AuthenticationError(f"MFA authentication failed: {str(e)}") from e

            creds = CachedCredentials(
                access_key_id=token.access_key_id,
                secret_access_key=token.secret_access_key,
                session_token=token.session_token,
                expiration=token.expiration,
                profile=profile,
            )

            try:
                self.cache.save(creds)
            except CacheWriteError as e:
                logger.error(f"Credentials issued for '{profile}' but not cached: {e}")
                raise CacheWriteError(
                    f"Credentials were issued for profile '{profile}' but could not be cached: {str(e)}"
                ) from e

        logger.info(f"Profile '{profile}' authenticated until {creds.expiration.isoformat()}")
        return creds
