"""Custom exceptions for the AWS MFA credential cache."""


class AwsMfaCacheError(Exception):
    """Base exception for the AWS MFA credential cache."""
    pass


class ConfigurationError(AwsMfaCacheError):
    """Application configuration file errors."""
    pass


class ConfigUnreadableError(AwsMfaCacheError):
    """AWS config or credentials file is missing or malformed."""
    pass


class ProfileNotFoundError(AwsMfaCacheError):
    """Requested profile has no section in the AWS files."""
    pass


class NoMFAConfiguredError(AwsMfaCacheError):
    """Profile exists but has no mfa_serial."""
    pass


class MissingCredentialsError(AwsMfaCacheError):
    """Profile lacks a long-lived access key or secret key."""
    pass


class AuthenticationError(AwsMfaCacheError):
    """STS rejected the session token request."""
    pass


class CacheWriteError(AwsMfaCacheError):
    """Issued credentials could not be persisted."""
    pass


class CacheNotFoundError(AwsMfaCacheError):
    """No cached credentials exist for the profile."""
    pass


class CacheCorruptError(CacheNotFoundError):
    """Cached record exists but cannot be parsed."""
    pass


class CredentialsExpiredError(AwsMfaCacheError):
    """Cached credentials are inside the expiry buffer."""
    pass


class SettingsWriteError(AwsMfaCacheError):
    """Settings could not be persisted."""
    pass
