# src/webpanel/hosting/nginx_manager.py
"""
Nginx site file management
Writes vhost configs, manages sites-enabled links, tests and reloads nginx
"""

import os

from ..core.exceptions import ExternalToolError
from .nginx_config import render_placeholder_index, render_site_config


class NginxManager:
    """Manage nginx virtual host files and the nginx process"""

    def __init__(self, config, logger, runner):
        self.config = config
        self.logger = logger
        self.runner = runner
        self.web_root = config.get("web_root")
        self.sites_available = config.get("nginx_sites_dir")
        self.sites_enabled = config.get("nginx_enabled_dir")

    def site_web_root(self, domain):
        return os.path.join(self.web_root, domain)

    def config_path(self, domain):
        return os.path.join(self.sites_available, domain)

    def enabled_path(self, domain):
        return os.path.join(self.sites_enabled, domain)

    def render_config(self, domain, ssl_enabled=False):
        return render_site_config(
            domain,
            self.site_web_root(domain),
            ssl_enabled,
            live_dir=self.config.get("letsencrypt_live_dir"),
            php_fpm_socket=self.config.get("php_fpm_socket"),
        )

    def create_web_root(self, domain):
        """Create the site directory and a placeholder index.html"""
        site_root = self.site_web_root(domain)
        os.makedirs(site_root, mode=0o755, exist_ok=True)

        with open(os.path.join(site_root, "index.html"), "w") as f:
            f.write(render_placeholder_index(domain))

        self.logger.debug(f"Web root ready: {site_root}")
        return site_root

    def write_site_config(self, domain, ssl_enabled=False):
        """Render and write the vhost into sites-available"""
        config_path = self.config_path(domain)
        os.makedirs(self.sites_available, exist_ok=True)

        with open(config_path, "w") as f:
            f.write(self.render_config(domain, ssl_enabled))

        return config_path

    def read_site_config(self, domain):
        try:
            with open(self.config_path(domain), "r") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def enable_site(self, domain):
        """Link the config into sites-enabled; an existing link is kept"""
        enabled_path = self.enabled_path(domain)
        os.makedirs(self.sites_enabled, exist_ok=True)

        try:
            os.symlink(self.config_path(domain), enabled_path)
        except FileExistsError:
            self.logger.debug(f"Site already enabled: {enabled_path}")

        return enabled_path

    def disable_site(self, domain):
        """Remove the sites-enabled link; a missing link is not an error"""
        return _remove_if_present(self.enabled_path(domain))

    def remove_site_config(self, domain):
        """Remove the sites-available file; a missing file is not an error"""
        return _remove_if_present(self.config_path(domain))

    def test_config(self):
        """Validate the whole nginx configuration"""
        try:
            self.runner.run(["nginx", "-t"])
        except ExternalToolError as e:
            raise ExternalToolError(
                f"Nginx configuration error: {e.output or e.message}",
                command=e.command,
                returncode=e.returncode,
                output=e.output,
            ) from e
        return True

    def reload(self):
        self.runner.run(["systemctl", "reload", "nginx"])
        return True

    def test_and_reload(self):
        """Reload nginx only after a clean configuration test"""
        self.test_config()
        self.reload()
        self.logger.info("Nginx configuration reloaded")
        return True

    def is_running(self):
        return self.runner.succeeds(["systemctl", "is-active", "nginx"])


def _remove_if_present(path):
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
