"""AWS profile discovery from the shared config and credentials files."""

import configparser
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import (
    ConfigUnreadableError,
    MissingCredentialsError,
    NoMFAConfiguredError,
    ProfileNotFoundError,
)
from .paths import PathResolver
from .settings import SettingsStore

logger = logging.getLogger(__name__)


PROFILE_PREFIX = "profile "
DEFAULT_PROFILE = "default"

# configparser folds a [DEFAULT] section into every other section; a name
# no real file uses keeps [DEFAULT] an ordinary (skipped) section instead.
_NO_DEFAULT_SECTION = "\x00no-default-section"


@dataclass(frozen=True)
class ProfileInfo:
    """An MFA-capable profile from the AWS config file."""
    name: str
    region: str
    mfa_serial: str
    source: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "region": self.region,
            "mfaSerial": self.mfa_serial,
        }
        if self.source:
            data["source"] = self.source
        return data


def config_section_name(profile: str) -> str:
    """Section name of ``profile`` in the AWS config file."""
    if profile == DEFAULT_PROFILE:
        return profile
    return PROFILE_PREFIX + profile


def profile_name_from_section(section: str) -> str:
    """Inverse of :func:`config_section_name` for sections read from a file."""
    if section.startswith(PROFILE_PREFIX) and len(section) > len(PROFILE_PREFIX):
        return section[len(PROFILE_PREFIX):]
    return section


def load_ini(path: str) -> configparser.ConfigParser:
    """
    Parse an AWS-style INI file.

    Args:
        path: File to read

    Returns:
        Parsed document, sections in file order

    Raises:
        ConfigUnreadableError: If the file is missing or malformed
    """
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        default_section=_NO_DEFAULT_SECTION,
    )
    try:
        with open(path, 'r', encoding='utf-8') as f:
            parser.read_file(f, source=path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigUnreadableError(f"Failed to load AWS file {path}: {str(e)}") from e
    except configparser.Error as e:
        raise ConfigUnreadableError(f"Failed to parse AWS file {path}: {str(e)}") from e
    return parser


class ProfileCatalog:
    """Reads MFA profiles and base credentials from the resolved AWS files."""

    def __init__(self, resolver: PathResolver, settings_store: SettingsStore):
        """
        Initialize profile catalog.

        Args:
            resolver: Resolves the AWS config and credentials file paths
            settings_store: Settings, echoed as each profile's source
        """
        self.resolver = resolver
        self.settings_store = settings_store

    def list_profiles(self) -> List[ProfileInfo]:
        """
        List profiles that have an MFA device configured.

        Returns:
            Profiles in file order

        Raises:
            ConfigUnreadableError: If the config file cannot be read
        """
        config_path = self.resolver.resolve_config_path()
        parser = load_ini(config_path)
        source = self.settings_store.load().credential_source.value

        profiles = []
        for section in parser.sections():
            if section == "DEFAULT":
                continue

            mfa_serial = parser.get(section, "mfa_serial", fallback="").strip()
            if not mfa_serial:
                continue

            profiles.append(ProfileInfo(
                name=profile_name_from_section(section),
                region=parser.get(section, "region", fallback="").strip(),
                mfa_serial=mfa_serial,
                source=source,
            ))

        logger.debug(f"Found {len(profiles)} MFA profiles in {config_path}")
        return profiles

    def resolve_mfa_serial(self, profile: str) -> str:
        """
        Look up the MFA device serial of ``profile``.

        Raises:
            ConfigUnreadableError: If the config file cannot be read
            ProfileNotFoundError: If the profile has no section
            NoMFAConfiguredError: If the section has no mfa_serial
        """
        section = self._config_section(profile)
        if section is None:
            raise ProfileNotFoundError(f"profile not found: {profile}")

        mfa_serial = section.get("mfa_serial", "").strip()
        if not mfa_serial:
            raise NoMFAConfiguredError(f"no mfa_serial configured for profile: {profile}")
        return mfa_serial

    def resolve_region(self, profile: str) -> Optional[str]:
        """Region configured for ``profile``, or None."""
        try:
            section = self._config_section(profile)
        except ConfigUnreadableError:
            return None
        if section is None:
            return None
        return section.get("region", "").strip() or None

    def resolve_base_credentials(self, profile: str) -> Tuple[str, str]:
        """
        Look up the long-lived access key pair of ``profile``.

        The credentials file names sections after the bare profile name.

        Returns:
            (access_key_id, secret_access_key)

        Raises:
            ConfigUnreadableError: If the credentials file cannot be read
            ProfileNotFoundError: If the profile has no section
            MissingCredentialsError: If either key is blank
        """
        parser = load_ini(self.resolver.resolve_credentials_path())
        if not parser.has_section(profile):
            raise ProfileNotFoundError(f"profile not found in credentials: {profile}")

        access_key = parser.get(profile, "aws_access_key_id", fallback="").strip()
        secret_key = parser.get(profile, "aws_secret_access_key", fallback="").strip()
        if not access_key or not secret_key:
            raise MissingCredentialsError(f"missing credentials for profile: {profile}")
        return access_key, secret_key

    def _config_section(self, profile: str) -> Optional[configparser.SectionProxy]:
        parser = load_ini(self.resolver.resolve_config_path())
        name = config_section_name(profile)
        if not parser.has_section(name):
            return None
        return parser[name]
