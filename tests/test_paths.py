"""Unit tests for AWS file path resolution."""

import pytest

from aws_mfa_cache.environment import EnvironmentDetector
from aws_mfa_cache.paths import PathResolver
from aws_mfa_cache.probe import StaticProber
from aws_mfa_cache.settings import CredentialSource, Settings, SettingsStore


WSL_KERNEL = "Linux version 5.15.90.1-microsoft-standard-WSL2"


def make_resolver(tmp_path, prober, settings=None):
    store = SettingsStore(str(tmp_path / "settings.json"))
    if settings is not None:
        store.save(settings)
    return PathResolver(store, EnvironmentDetector(prober))


@pytest.fixture
def wsl2_prober():
    """WSL2 host with a resolvable Windows home; nothing exists yet."""
    return StaticProber(
        system_name="linux",
        home="/home/dev",
        kernel=WSL_KERNEL,
        user_profile="C:\\Users\\alice",
    )


def test_auto_prefers_first_existing_candidate(tmp_path, wsl2_prober):
    wsl2_prober.existing_paths = {"/home/dev/.aws/config", "/mnt/c/Users/alice/.aws/config"}
    resolver = make_resolver(tmp_path, wsl2_prober)

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"
    assert resolver.resolve_credentials_path() == "/home/dev/.aws/credentials"


def test_auto_skips_missing_first_candidate(tmp_path, wsl2_prober):
    """Only the second candidate exists, so the second one wins."""
    wsl2_prober.existing_paths = {"/mnt/c/Users/alice/.aws/config"}
    resolver = make_resolver(tmp_path, wsl2_prober)

    assert resolver.resolve_config_path() == "/mnt/c/Users/alice/.aws/config"
    assert resolver.resolve_credentials_path() == "/mnt/c/Users/alice/.aws/credentials"


def test_auto_without_existing_candidates_falls_back_to_native(tmp_path, wsl2_prober):
    resolver = make_resolver(tmp_path, wsl2_prober)

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"
    assert resolver.resolve_credentials_path() == "/home/dev/.aws/credentials"


def test_auto_rediscovers_on_every_call(tmp_path, wsl2_prober):
    resolver = make_resolver(tmp_path, wsl2_prober)
    assert resolver.resolve_config_path() == "/home/dev/.aws/config"

    wsl2_prober.existing_paths = {"/mnt/c/Users/alice/.aws/config"}
    assert resolver.resolve_config_path() == "/mnt/c/Users/alice/.aws/config"


def test_custom_uses_pinned_paths(tmp_path, wsl2_prober):
    settings = Settings(
        credential_source=CredentialSource.CUSTOM,
        custom_config_path="/opt/aws/config",
        custom_creds_path="/opt/aws/credentials",
    )
    resolver = make_resolver(tmp_path, wsl2_prober, settings)

    assert resolver.resolve_config_path() == "/opt/aws/config"
    assert resolver.resolve_credentials_path() == "/opt/aws/credentials"


def test_custom_with_empty_path_falls_back_to_native(tmp_path, wsl2_prober):
    settings = Settings(credential_source=CredentialSource.CUSTOM, custom_creds_path="/opt/creds")
    resolver = make_resolver(tmp_path, wsl2_prober, settings)

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"
    assert resolver.resolve_credentials_path() == "/opt/creds"


def test_windows_inside_wsl2_uses_windows_home(tmp_path, wsl2_prober):
    resolver = make_resolver(tmp_path, wsl2_prober, Settings(CredentialSource.WINDOWS))

    assert resolver.resolve_config_path() == "/mnt/c/Users/alice/.aws/config"
    assert resolver.resolve_credentials_path() == "/mnt/c/Users/alice/.aws/credentials"


def test_windows_inside_wsl2_without_home_falls_back(tmp_path):
    prober = StaticProber(system_name="linux", home="/home/dev", kernel=WSL_KERNEL)
    resolver = make_resolver(tmp_path, prober, Settings(CredentialSource.WINDOWS))

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"


def test_windows_native_uses_userprofile(tmp_path):
    prober = StaticProber(
        system_name="windows",
        home="C:\\Users\\home",
        env={"USERPROFILE": "D:\\Profiles\\alice"},
    )
    resolver = make_resolver(tmp_path, prober, Settings(CredentialSource.WINDOWS))

    assert resolver.resolve_config_path() == "D:\\Profiles\\alice\\.aws\\config"
    assert resolver.resolve_credentials_path() == "D:\\Profiles\\alice\\.aws\\credentials"


def test_windows_on_plain_linux_falls_back(tmp_path):
    prober = StaticProber(system_name="linux", home="/home/dev", kernel="Linux version 6.1")
    resolver = make_resolver(tmp_path, prober, Settings(CredentialSource.WINDOWS))

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"


@pytest.mark.parametrize("source", [CredentialSource.LINUX, CredentialSource.WSL2])
def test_linux_and_wsl2_resolve_to_native_home(tmp_path, wsl2_prober, source):
    wsl2_prober.existing_paths = {"/mnt/c/Users/alice/.aws/config"}
    resolver = make_resolver(tmp_path, wsl2_prober, Settings(source))

    assert resolver.resolve_config_path() == "/home/dev/.aws/config"
    assert resolver.resolve_credentials_path() == "/home/dev/.aws/credentials"


def test_settings_change_is_picked_up_immediately(tmp_path, wsl2_prober):
    store = SettingsStore(str(tmp_path / "settings.json"))
    resolver = PathResolver(store, EnvironmentDetector(wsl2_prober))
    assert resolver.resolve_config_path() == "/home/dev/.aws/config"

    store.save(Settings(CredentialSource.CUSTOM, custom_config_path="/elsewhere/config"))
    assert resolver.resolve_config_path() == "/elsewhere/config"
