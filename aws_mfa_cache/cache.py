"""On-disk cache of MFA session credentials."""

import glob
import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from .config import CacheConfig, SETTINGS_FILENAME
from .exceptions import CacheCorruptError, CacheNotFoundError, CacheWriteError
from .fileio import ensure_private_directory, write_private_json

logger = logging.getLogger(__name__)


DEFAULT_PROFILE = "default"
RESERVED_PROFILE_NAMES = frozenset({os.path.splitext(SETTINGS_FILENAME)[0]})

# Fractional seconds of any precision (Go trims trailing zeros and writes
# up to nanoseconds) are normalized to exactly six digits
_FRACTION = re.compile(r"\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as RFC 3339 UTC with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class CachedCredentials:
    """Temporary credentials issued for a profile."""
    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime
    profile: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedCredentials":
        """
        Build credentials from their JSON form.

        Raises:
            ValueError: If a field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Cached credentials must be a JSON object")

        fields = {}
        for key in ("accessKeyId", "secretAccessKey", "sessionToken", "profile"):
            value = data.get(key)
            if not isinstance(value, str):
                raise ValueError(f"Missing or invalid field '{key}'")
            fields[key] = value

        return cls(
            access_key_id=fields["accessKeyId"],
            secret_access_key=fields["secretAccessKey"],
            session_token=fields["sessionToken"],
            expiration=parse_timestamp(data.get("expiration")),
            profile=fields["profile"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accessKeyId": self.access_key_id,
            "secretAccessKey": self.secret_access_key,
            "sessionToken": self.session_token,
            "expiration": format_timestamp(self.expiration),
            "profile": self.profile,
        }


class CredentialCache:
    """Manages per-profile cache files of MFA session credentials."""

    def __init__(self, cache_config: CacheConfig,
                 clock: Callable[[], datetime] = utc_now):
        """
        Initialize credential cache.

        Args:
            cache_config: Cache configuration (directory, expiry buffer)
            clock: Returns the current time as an aware datetime
        """
        self.cache_config = cache_config
        self.directory = cache_config.path
        self.clock = clock
        self.expiry_buffer = timedelta(seconds=cache_config.expiry_buffer_seconds)

    def ensure_directory(self) -> None:
        """Create the cache directory with owner-only permissions."""
        try:
            ensure_private_directory(self.directory)
            logger.debug(f"Cache directory ensured: {self.directory}")
        except OSError as e:
            logger.warning(f"Failed to create cache directory: {e}")

    def get_cache_filename(self, profile: str) -> str:
        """
        Get cache filename for a profile.

        Args:
            profile: Profile name; empty means ``default``

        Returns:
            Full path to cache file

        Raises:
            ValueError: If the name cannot be used as a file name
        """
        profile = profile or DEFAULT_PROFILE
        if (profile in (".", "..") or profile in RESERVED_PROFILE_NAMES
                or "/" in profile or "\\" in profile or "\x00" in profile):
            raise ValueError(f"Invalid profile name for cache: {profile!r}")
        return os.path.join(self.directory, f"{profile}.json")

    def load(self, profile: str) -> CachedCredentials:
        """
        Load cached credentials for a profile.

        Raises:
            CacheNotFoundError: If nothing is cached for the profile
            CacheCorruptError: If the cache file cannot be parsed
        """
        cache_file = self.get_cache_filename(profile)
        try:
            with open(cache_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CacheNotFoundError(f"No cached credentials for profile: {profile or DEFAULT_PROFILE}") from e
        except OSError as e:
            raise CacheNotFoundError(f"Failed to read cache file {cache_file}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupt cache file {cache_file}: {e}")
            raise CacheCorruptError(f"Corrupt cache file {cache_file}") from e

        try:
            return CachedCredentials.from_dict(data)
        except ValueError as e:
            logger.warning(f"Invalid cache entry in {cache_file}: {e}")
            raise CacheCorruptError(f"Invalid cache entry in {cache_file}: {e}") from e

    def save(self, creds: CachedCredentials) -> None:
        """
        Replace the cached credentials of ``creds.profile``.

        Raises:
            CacheWriteError: If the cache file cannot be written
        """
        cache_file = self.get_cache_filename(creds.profile)
        try:
            write_private_json(cache_file, creds.to_dict())
        except OSError as e:
            raise CacheWriteError(f"Failed to write cache file {cache_file}: {str(e)}") from e
        logger.debug(f"Stored cache entry: {cache_file}")

    def is_valid(self, creds: Optional[CachedCredentials]) -> bool:
        """
        Check that credentials outlive the expiry buffer.

        Args:
            creds: Cached credentials, or None

        Returns:
            True if ``now + buffer`` is strictly before the expiration
        """
        if creds is None:
            return False
        return self.clock() + self.expiry_buffer < creds.expiration

    def load_valid(self, profile: str) -> Optional[CachedCredentials]:
        """Cached credentials for ``profile`` if present and valid, else None."""
        try:
            creds = self.load(profile)
        except CacheNotFoundError:
            return None
        return creds if self.is_valid(creds) else None

    def clear(self, profile: str) -> None:
        """Delete the cache file of ``profile``; a missing file is not an error."""
        cache_file = self.get_cache_filename(profile)
        try:
            os.remove(cache_file)
            logger.info(f"Cleared cached credentials for profile: {profile or DEFAULT_PROFILE}")
        except FileNotFoundError:
            pass

    def clear_all(self) -> int:
        """
        Delete every profile's cache file, leaving the settings file alone.

        Returns:
            Number of files removed
        """
        removed = 0
        for cache_file in glob.glob(os.path.join(glob.escape(self.directory), "*.json")):
            if os.path.basename(cache_file) == SETTINGS_FILENAME:
                continue
            try:
                os.remove(cache_file)
                removed += 1
            except FileNotFoundError:
                continue
        logger.info(f"Cleared {removed} cached credential file(s)")
        return removed
