"""Unit tests for the settings store."""

import json
import os
import stat
import threading

import pytest

from aws_mfa_cache.exceptions import SettingsWriteError
from aws_mfa_cache.settings import CredentialSource, Settings, SettingsStore


@pytest.fixture
def settings_file(tmp_path):
    return str(tmp_path / "cache" / "settings.json")


def test_load_defaults_when_file_missing(settings_file):
    """A missing settings file means auto-detection, not an error."""
    store = SettingsStore(settings_file)
    settings = store.load()

    assert settings.credential_source == CredentialSource.AUTO
    assert settings.custom_config_path == ""
    assert not os.path.exists(settings_file)


def test_load_defaults_when_file_corrupt(settings_file):
    os.makedirs(os.path.dirname(settings_file))
    with open(settings_file, "w") as f:
        f.write("{not json")

    assert SettingsStore(settings_file).load() == Settings()


def test_load_defaults_when_source_unknown(settings_file):
    os.makedirs(os.path.dirname(settings_file))
    with open(settings_file, "w") as f:
        json.dump({"credentialSource": "mainframe"}, f)

    assert SettingsStore(settings_file).load().credential_source == CredentialSource.AUTO


def test_load_reads_existing_file(settings_file):
    os.makedirs(os.path.dirname(settings_file))
    with open(settings_file, "w") as f:
        json.dump({
            "credentialSource": "custom",
            "customConfigPath": "/opt/aws/config",
            "customCredsPath": "/opt/aws/credentials",
            "wsl2Distro": "Ubuntu",
        }, f)

    settings = SettingsStore(settings_file).load()

    assert settings == Settings(
        credential_source=CredentialSource.CUSTOM,
        custom_config_path="/opt/aws/config",
        custom_creds_path="/opt/aws/credentials",
        wsl2_distro="Ubuntu",
    )


def test_load_is_cached_after_first_read(settings_file):
    """Later file changes are not observed until reload."""
    store = SettingsStore(settings_file)
    assert store.load().credential_source == CredentialSource.AUTO

    os.makedirs(os.path.dirname(settings_file))
    with open(settings_file, "w") as f:
        json.dump({"credentialSource": "windows"}, f)

    assert store.load().credential_source == CredentialSource.AUTO
    assert store.reload().credential_source == CredentialSource.WINDOWS


def test_save_persists_and_updates_memory(settings_file):
    store = SettingsStore(settings_file)
    store.load()

    store.save(Settings(credential_source=CredentialSource.LINUX))

    assert store.load().credential_source == CredentialSource.LINUX
    with open(settings_file) as f:
        assert json.load(f) == {"credentialSource": "linux"}


def test_save_visible_without_rereading_disk(settings_file):
    store = SettingsStore(settings_file)
    store.save(Settings(credential_source=CredentialSource.WSL2))
    os.remove(settings_file)

    assert store.load().credential_source == CredentialSource.WSL2


def test_save_restricts_permissions(settings_file):
    SettingsStore(settings_file).save(Settings())

    assert stat.S_IMODE(os.stat(settings_file).st_mode) == 0o600
    assert stat.S_IMODE(os.stat(os.path.dirname(settings_file)).st_mode) == 0o700


def test_save_failure_raises_and_keeps_previous_value(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = SettingsStore(str(blocker / "settings.json"))

    with pytest.raises(SettingsWriteError):
        store.save(Settings(credential_source=CredentialSource.CUSTOM))

    assert store.load().credential_source == CredentialSource.AUTO


def test_settings_to_dict_omits_empty_fields():
    assert Settings().to_dict() == {"credentialSource": "auto"}
    assert Settings(CredentialSource.CUSTOM, "/a", "/b", "Ubuntu").to_dict() == {
        "credentialSource": "custom",
        "customConfigPath": "/a",
        "customCredsPath": "/b",
        "wsl2Distro": "Ubuntu",
    }


def test_settings_from_dict_rejects_unknown_source():
    with pytest.raises(ValueError, match="Invalid credentialSource"):
        Settings.from_dict({"credentialSource": "floppy"})


def test_settings_from_dict_rejects_non_string_paths():
    with pytest.raises(ValueError, match="customConfigPath"):
        Settings.from_dict({"credentialSource": "custom", "customConfigPath": 42})


def test_settings_from_dict_empty_source_means_auto():
    assert Settings.from_dict({}).credential_source == CredentialSource.AUTO


def test_save_in_one_thread_visible_to_load_in_another(settings_file):
    store = SettingsStore(settings_file)
    assert store.load().credential_source == CredentialSource.AUTO

    writer = threading.Thread(
        target=store.save, args=(Settings(credential_source=CredentialSource.WINDOWS),))
    writer.start()
    writer.join()

    seen = []
    reader = threading.Thread(target=lambda: seen.append(store.load()))
    reader.start()
    reader.join()

    assert seen[0].credential_source == CredentialSource.WINDOWS


def test_concurrent_saves_leave_one_complete_file(settings_file):
    store = SettingsStore(settings_file)
    sources = [CredentialSource.LINUX, CredentialSource.WINDOWS, CredentialSource.WSL2] * 5
    threads = [threading.Thread(target=store.save, args=(Settings(s),)) for s in sources]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    with open(settings_file) as f:
        on_disk = Settings.from_dict(json.load(f))
    assert store.load() == on_disk
    assert store.reload() == on_disk
