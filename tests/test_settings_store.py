import json

import pytest

from trucksales.core.errors import StorageError, ValidationError
from trucksales.core.settings_store import DisplaySettings, SettingsStore


def test_defaults_when_file_missing(settings_store):
    assert settings_store.get("app_name") == "BIFA"
    assert settings_store.get("distribution_name") == "SARL distribution alahbab"
    assert not settings_store.path.exists()


def test_set_persists_and_notifies(tmp_path):
    path = tmp_path / "display_settings.json"
    store = SettingsStore(path)
    seen: list[DisplaySettings] = []
    unsubscribe = store.subscribe(seen.append)

    store.set("distribution_name", "  Distribution El Baraka ")

    assert json.loads(path.read_text(encoding="utf-8"))["distribution_name"] == "Distribution El Baraka"
    assert [values.distribution_name for values in seen] == ["Distribution El Baraka"]
    assert SettingsStore(path).get("distribution_name") == "Distribution El Baraka"

    unsubscribe()
    store.reset()
    assert len(seen) == 1
    assert SettingsStore(path).get("distribution_name") == "SARL distribution alahbab"


def test_invalid_updates_are_rejected(settings_store):
    with pytest.raises(ValidationError):
        settings_store.set("theme", "dark")
    with pytest.raises(ValidationError):
        settings_store.get("theme")
    with pytest.raises(ValidationError):
        settings_store.set("app_name", "   ")

    assert settings_store.get("app_name") == "BIFA"
    assert not settings_store.path.exists()


def test_corrupt_file_raises_storage_error(tmp_path):
    path = tmp_path / "display_settings.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        SettingsStore(path)
