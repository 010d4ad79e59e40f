# src/webpanel/utils/config.py
"""
Configuration management for the web panel
Handles environment variables, config files, and defaults
"""

import os
import json


class Config:
    """Configuration manager with environment and file support"""

    def __init__(self, config_file=None, overrides=None):
        self.config_data = {}
        self._load_defaults()

        if config_file and os.path.exists(config_file):
            self._load_from_file(config_file)

        self._load_from_env()

        if overrides:
            self.config_data.update(overrides)

    def _load_defaults(self):
        """Load default configuration values"""
        self.config_data = {
            # Core paths
            "database_path": "/var/lib/webpanel/panel.db",
            "settings_path": "/var/lib/webpanel/settings.json",
            "log_dir": "/var/log/webpanel",
            "web_root": "/var/www",
            # Nginx / TLS
            "nginx_sites_dir": "/etc/nginx/sites-available",
            "nginx_enabled_dir": "/etc/nginx/sites-enabled",
            "letsencrypt_live_dir": "/etc/letsencrypt/live",
            "php_fpm_socket": "/var/run/php/php8.1-fpm.sock",
            "certbot_timeout": 300,
            "command_timeout": 60,
            # Cloudflare
            "cloudflare_api_url": "https://api.cloudflare.com/client/v4",
            "cloudflare_timeout": 10,
            "cloudflare_api_token": "",
            "cloudflare_zone_id": "",
            "cloudflare_email": "",
            # Mail stack
            "postfix_config_dir": "/etc/postfix",
            "postfix_virtual_domains": "/etc/postfix/virtual_mailbox_domains",
            "postfix_virtual_mailbox_maps": "/etc/postfix/virtual_mailbox_maps",
            "postfix_virtual_alias_maps": "/etc/postfix/virtual_alias_maps",
            "dovecot_users_file": "/etc/dovecot/users",
            "dkim_keys_dir": "/etc/opendkim/keys",
            "dkim_selector": "default",
            "mail_home": "/var/mail",
            "vmail_user": "vmail",
            "mail_services": ["postfix", "dovecot", "opendkim"],
            "email_default_quota": 1000,
            "email_max_accounts": 100,
            "min_password_length": 6,
            "bcrypt_log_rounds": 12,
            # API settings
            "api_host": "0.0.0.0",
            "api_port": 3001,
            "jwt_secret_key": "",
            "jwt_expires_hours": 24,
            "allowed_origins": ["*"],
            # System
            "debug_mode": False,
        }

    def _load_from_file(self, config_file):
        """Load configuration from JSON file"""
        try:
            with open(config_file, "r") as f:
                file_config = json.load(f)
                self.config_data.update(file_config)
        except (OSError, ValueError) as e:
            print(f"Warning: Could not load config file {config_file}: {e}")

    def _load_from_env(self):
        """Load configuration from environment variables"""
        env_mapping = {
            "PANEL_DB_PATH": "database_path",
            "PANEL_SETTINGS_PATH": "settings_path",
            "PANEL_LOG_DIR": "log_dir",
            "PANEL_API_HOST": "api_host",
            "PANEL_API_PORT": "api_port",
            "PANEL_JWT_SECRET": "jwt_secret_key",
            "PANEL_COMMAND_TIMEOUT": "command_timeout",
            "PANEL_DEBUG": "debug_mode",
            "WEB_ROOT": "web_root",
            "NGINX_SITES_AVAILABLE": "nginx_sites_dir",
            "NGINX_SITES_ENABLED": "nginx_enabled_dir",
            "POSTFIX_CONFIG_PATH": "postfix_config_dir",
            "POSTFIX_VIRTUAL_MAILBOX_DOMAINS": "postfix_virtual_domains",
            "POSTFIX_VIRTUAL_MAILBOX_MAPS": "postfix_virtual_mailbox_maps",
            "POSTFIX_VIRTUAL_ALIAS_MAPS": "postfix_virtual_alias_maps",
            "DOVECOT_USERS_FILE": "dovecot_users_file",
            "MAIL_HOME": "mail_home",
            "CLOUDFLARE_API_TOKEN": "cloudflare_api_token",
            "CLOUDFLARE_ZONE_ID": "cloudflare_zone_id",
            "CLOUDFLARE_EMAIL": "cloudflare_email",
        }

        int_suffixes = ("_port", "_timeout", "_accounts", "_quota", "_length", "_hours", "_rounds")

        for env_var, config_key in env_mapping.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Type conversion
                if config_key.endswith(int_suffixes):
                    try:
                        self.config_data[config_key] = int(env_value)
                    except ValueError:
                        pass
                elif config_key.endswith("_mode") or config_key.endswith("_enabled"):
                    self.config_data[config_key] = env_value.lower() in (
                        "true",
                        "1",
                        "yes",
                        "on",
                    )
                else:
                    self.config_data[config_key] = env_value

    def get(self, key, default=None):
        """Get configuration value"""
        return self.config_data.get(key, default)

    def validate(self):
        """Validate configuration values"""
        errors = []

        # Check required paths exist or can be created
        path_keys = ["database_path", "settings_path"]
        for key in path_keys:
            path = self.get(key)
            if path:
                try:
                    os.makedirs(os.path.dirname(path), exist_ok=True)
                except OSError as e:
                    errors.append(f"Cannot create directory for {key}: {path} - {e}")

        port = self.get("api_port")
        if port and not (1 <= port <= 65535):
            errors.append(f"Invalid port for api_port: {port}")

        for key in ["command_timeout", "certbot_timeout", "cloudflare_timeout"]:
            timeout = self.get(key)
            if timeout is not None and timeout <= 0:
                errors.append(f"Timeout must be positive for {key}: {timeout}")

        if self.get("min_password_length", 0) < 1:
            errors.append("min_password_length must be at least 1")

        return errors
