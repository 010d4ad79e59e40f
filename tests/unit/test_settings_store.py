"""Unit tests for the settings store."""
import json
import os

import pytest

from webpanel.core.exceptions import ValidationError
from webpanel.utils.settings_store import SettingsStore, mask_token


@pytest.fixture
def store(config, logger):
    return SettingsStore(config, logger)


def test_defaults_when_file_missing(store):
    assert store.load() == {"cloudflare": {"apiToken": "", "zoneId": "", "email": ""}}


def test_corrupt_file_falls_back_to_defaults(store, config):
    os.makedirs(os.path.dirname(config.get("settings_path")), exist_ok=True)
    with open(config.get("settings_path"), "w") as f:
        f.write("{not json")

    assert store.load()["cloudflare"]["apiToken"] == ""


def test_save_trims_and_masks(store, config):
    store.save_cloudflare_settings("  abcdefghijklmnop  ", " zone-1 ", None)

    with open(config.get("settings_path")) as f:
        saved = json.load(f)
    assert saved["cloudflare"] == {"apiToken": "abcdefghijklmnop", "zoneId": "zone-1", "email": ""}

    masked = store.masked_cloudflare_settings()
    assert masked["apiToken"] == "abcdefgh..."
    assert masked["configured"] is True


def test_token_is_required(store):
    with pytest.raises(ValidationError, match="API Token is required"):
        store.save_cloudflare_settings("   ")


def test_environment_values_fill_empty_settings(store, config):
    config.config_data.update({"cloudflare_api_token": "env-token", "cloudflare_zone_id": "env-zone"})
    store.save_cloudflare_settings("file-token")

    settings = store.get_cloudflare_settings()

    assert settings["apiToken"] == "file-token"
    assert settings["zoneId"] == "env-zone"


def test_export_redacts_token(store):
    store.save_cloudflare_settings("secret-token", "zone-1", "ops@example.com")

    exported = store.export_settings()

    assert exported["cloudflare"]["apiToken"] == "[REDACTED]"
    assert exported["cloudflare"]["email"] == "ops@example.com"


def test_mask_token():
    assert mask_token("") == ""
    assert mask_token("short") == "..."
    assert mask_token("abcdefghijklmno") == "..."
    assert mask_token("abcdefghijklmnop") == "abcdefgh..."
