"""Shared fixtures for credential cache tests."""

import os
from datetime import datetime, timedelta, timezone

import pytest

from aws_mfa_cache.auth import SessionToken, SessionTokenIssuer
from aws_mfa_cache.cache import CredentialCache
from aws_mfa_cache.config import CacheConfig, Config
from aws_mfa_cache.probe import StaticProber


CONFIG_TEXT = """\
[default]
region = us-west-2
mfa_serial = arn:aws:iam::111:mfa/default

[profile dev]
region = us-east-1
mfa_serial = arn:aws:iam::111:mfa/u

[profile nomfa]
region = eu-west-1

[profile prod]
mfa_serial = arn:aws:iam::222:mfa/ops
"""

CREDENTIALS_TEXT = """\
[default]
aws_access_key_id = AKIADEFAULT
aws_secret_access_key = secret-default

[dev]
aws_access_key_id = AKIADEV
aws_secret_access_key = secret-dev

[prod]
aws_access_key_id = AKIAPROD
aws_secret_access_key =
"""

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock returning ``self.now``."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class StubIssuer(SessionTokenIssuer):
    """Session token issuer returning a fixed token and recording calls."""

    def __init__(self, expiration: datetime = NOW + timedelta(hours=1), error: Exception = None):
        self.expiration = expiration
        self.error = error
        self.calls = []

    def get_session_token(self, access_key_id, secret_access_key, serial_number,
                          token_code, duration_seconds, region=None):
        self.calls.append({
            "access_key_id": access_key_id,
            "secret_access_key": secret_access_key,
            "serial_number": serial_number,
            "token_code": token_code,
            "duration_seconds": duration_seconds,
            "region": region,
        })
        if self.error is not None:
            raise self.error
        return SessionToken(
            access_key_id="ASIATEMP",
            secret_access_key="temp-secret",
            session_token="temp-token",
            expiration=self.expiration,
        )


def write_aws_files(home: str, config_text: str = CONFIG_TEXT,
                    credentials_text: str = CREDENTIALS_TEXT) -> None:
    aws_dir = os.path.join(home, ".aws")
    os.makedirs(aws_dir, exist_ok=True)
    with open(os.path.join(aws_dir, "config"), "w", encoding="utf-8") as f:
        f.write(config_text)
    with open(os.path.join(aws_dir, "credentials"), "w", encoding="utf-8") as f:
        f.write(credentials_text)


@pytest.fixture
def home_dir(tmp_path):
    """Home directory containing ``.aws/config`` and ``.aws/credentials``."""
    home = tmp_path / "home"
    home.mkdir()
    write_aws_files(str(home))
    return str(home)


@pytest.fixture
def prober(home_dir):
    """Native Linux host whose AWS config exists."""
    return StaticProber(
        system_name="linux",
        home=home_dir,
        kernel="Linux version 6.1.0-generic (gcc)",
        existing_paths={os.path.join(home_dir, ".aws", "config")},
    )


@pytest.fixture
def cache_config(tmp_path):
    return CacheConfig(directory=str(tmp_path / "cache"))


@pytest.fixture
def app_config(cache_config):
    return Config(cache=cache_config)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credential_cache(cache_config, clock):
    return CredentialCache(cache_config, clock=clock)


@pytest.fixture
def issuer():
    return StubIssuer()
