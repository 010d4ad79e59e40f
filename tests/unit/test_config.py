"""Unit tests for configuration loading."""
import json

from webpanel.utils.config import Config


def test_defaults():
    config = Config()

    assert config.get("api_port") == 3001
    assert config.get("min_password_length") == 6
    assert config.get("dkim_selector") == "default"


def test_file_then_environment_then_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "panel.json"
    config_file.write_text(json.dumps({"web_root": "/srv/www", "api_port": 4000}))
    monkeypatch.setenv("PANEL_API_PORT", "5000")
    monkeypatch.setenv("PANEL_DEBUG", "yes")
    monkeypatch.setenv("WEB_ROOT", "/data/www")

    config = Config(str(config_file), overrides={"web_root": "/override"})

    assert config.get("api_port") == 5000
    assert config.get("debug_mode") is True
    assert config.get("web_root") == "/override"


def test_bad_integer_in_environment_is_ignored(monkeypatch):
    monkeypatch.setenv("PANEL_API_PORT", "not-a-port")

    assert Config().get("api_port") == 3001


def test_unreadable_config_file_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("WEB_ROOT", raising=False)
    config_file = tmp_path / "panel.json"
    config_file.write_text("{not json")

    config = Config(str(config_file))

    assert config.get("web_root") == "/var/www"


def test_validate_reports_bad_values(tmp_path):
    config = Config(
        overrides={
            "database_path": str(tmp_path / "db" / "panel.db"),
            "settings_path": str(tmp_path / "db" / "settings.json"),
            "api_port": 70000,
            "certbot_timeout": 0,
        }
    )

    errors = config.validate()

    assert "Invalid port for api_port: 70000" in errors
    assert any("certbot_timeout" in error for error in errors)
