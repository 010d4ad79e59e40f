# src/webpanel/utils/settings_store.py
"""
Persisted provider settings
A single JSON document read and written as a whole file
"""

import copy
import json
import os

from ..core.exceptions import PanelError, ValidationError


MASK_VISIBLE_CHARS = 8

DEFAULT_SETTINGS = {
    "cloudflare": {
        "apiToken": "",
        "zoneId": "",
        "email": "",
    }
}


class SettingsStore:
    """Cloudflare credential storage with environment fallbacks"""

    def __init__(self, config, logger):
        self.config = config
        self.logger = logger
        self.settings_path = config.get("settings_path")

    def load(self):
        """Load settings, falling back to defaults when the file is missing or unreadable"""
        try:
            with open(self.settings_path, "r") as f:
                settings = json.load(f)
        except FileNotFoundError:
            return copy.deepcopy(DEFAULT_SETTINGS)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not read settings file {self.settings_path}: {e}")
            return copy.deepcopy(DEFAULT_SETTINGS)

        cloudflare = dict(DEFAULT_SETTINGS["cloudflare"])
        cloudflare.update(settings.get("cloudflare") or {})
        settings["cloudflare"] = cloudflare
        return settings

    def save(self, settings):
        """Write the whole settings document"""
        try:
            os.makedirs(os.path.dirname(self.settings_path), exist_ok=True)
            with open(self.settings_path, "w") as f:
                json.dump(settings, f, indent=2)
        except OSError as e:
            self.logger.error(f"Error saving settings: {e}")
            raise PanelError("Failed to save settings")

    def get_cloudflare_settings(self):
        """Stored Cloudflare credentials, with environment defaults for empty values"""
        stored = self.load()["cloudflare"]
        return {
            "apiToken": stored.get("apiToken") or self.config.get("cloudflare_api_token", ""),
            "zoneId": stored.get("zoneId") or self.config.get("cloudflare_zone_id", ""),
            "email": stored.get("email") or self.config.get("cloudflare_email", ""),
        }

    def masked_cloudflare_settings(self):
        """Stored settings with the API token truncated"""
        cloudflare = dict(self.load()["cloudflare"])
        token = cloudflare.get("apiToken", "")
        cloudflare["apiToken"] = mask_token(token)
        cloudflare["configured"] = bool(token)
        return cloudflare

    def save_cloudflare_settings(self, api_token, zone_id=None, email=None):
        if not api_token or not api_token.strip():
            raise ValidationError("API Token is required")

        settings = self.load()
        settings["cloudflare"] = {
            "apiToken": api_token.strip(),
            "zoneId": (zone_id or "").strip(),
            "email": (email or "").strip(),
        }
        self.save(settings)
        self.logger.info("Cloudflare settings saved")

    def export_settings(self):
        """Settings for backup, with secrets redacted"""
        settings = self.load()
        cloudflare = dict(settings["cloudflare"])
        cloudflare["apiToken"] = "[REDACTED]" if cloudflare.get("apiToken") else ""
        settings["cloudflare"] = cloudflare
        return settings


def mask_token(token):
    """First 8 characters of a token plus an ellipsis; short tokens show none."""
    if not token:
        return ""
    if len(token) < 2 * MASK_VISIBLE_CHARS:
        return "..."
    return token[:MASK_VISIBLE_CHARS] + "..."
