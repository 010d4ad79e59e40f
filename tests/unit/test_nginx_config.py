"""Unit tests for nginx vhost rendering."""
from webpanel.hosting.nginx_config import certificate_paths, render_site_config


class TestRenderSiteConfig:
    """Tests for the vhost templates."""

    def test_basic_config_serves_apex_and_www(self):
        config = render_site_config("example.com", "/var/www/example.com")

        assert "listen 80;" in config
        assert "server_name example.com www.example.com;" in config
        assert "root /var/www/example.com;" in config
        assert "try_files $uri $uri/ =404;" in config
        assert "443" not in config
        assert "ssl_certificate" not in config

    def test_ssl_config_redirects_and_points_at_certificates(self):
        config = render_site_config("example.com", "/var/www/example.com", ssl_enabled=True)

        assert "return 301 https://$server_name$request_uri;" in config
        assert "listen 443 ssl http2;" in config
        assert "ssl_certificate /etc/letsencrypt/live/example.com/fullchain.pem;" in config
        assert "ssl_certificate_key /etc/letsencrypt/live/example.com/privkey.pem;" in config
        assert config.count("server_name example.com www.example.com;") == 2

    def test_php_socket_is_configurable(self):
        config = render_site_config(
            "example.com", "/srv/example.com", php_fpm_socket="/run/php/php8.3-fpm.sock"
        )

        assert "fastcgi_pass unix:/run/php/php8.3-fpm.sock;" in config


class TestCertificatePaths:
    """Tests for Let's Encrypt path conventions."""

    def test_trailing_slash_is_ignored(self):
        paths = certificate_paths("example.com", "/etc/letsencrypt/live/")

        assert paths["fullchain_path"] == "/etc/letsencrypt/live/example.com/fullchain.pem"
        assert paths["privkey_path"] == "/etc/letsencrypt/live/example.com/privkey.pem"
