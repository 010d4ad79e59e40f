# src/webpanel/hosting/nginx_config.py
"""
Nginx virtual host rendering
Pure string construction, no I/O
"""

DEFAULT_LIVE_DIR = "/etc/letsencrypt/live"
DEFAULT_PHP_FPM_SOCKET = "/var/run/php/php8.1-fpm.sock"


def certificate_paths(domain, live_dir=DEFAULT_LIVE_DIR):
    """Conventional Let's Encrypt paths for a domain"""
    cert_dir = f"{live_dir.rstrip('/')}/{domain}"
    return {
        "fullchain_path": f"{cert_dir}/fullchain.pem",
        "privkey_path": f"{cert_dir}/privkey.pem",
    }


def render_site_config(domain, web_root, ssl_enabled=False,
                       live_dir=DEFAULT_LIVE_DIR, php_fpm_socket=DEFAULT_PHP_FPM_SOCKET):
    """Generate nginx configuration for a site"""
    if ssl_enabled:
        return _render_ssl_config(domain, web_root, live_dir, php_fpm_socket)
    return _render_basic_config(domain, web_root, php_fpm_socket)


def _site_body(web_root, php_fpm_socket):
    return f"""    root {web_root};
    index index.html index.htm index.php;

    location / {{
        try_files $uri $uri/ =404;
    }}

    location ~ \\.php$ {{
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:{php_fpm_socket};
    }}

    location ~ /\\.ht {{
        deny all;
    }}"""


def _render_basic_config(domain, web_root, php_fpm_socket):
    return f"""server {{
    listen 80;
    server_name {domain} www.{domain};

{_site_body(web_root, php_fpm_socket)}
}}
"""


def _render_ssl_config(domain, web_root, live_dir, php_fpm_socket):
    paths = certificate_paths(domain, live_dir)
    return f"""server {{
    listen 80;
    server_name {domain} www.{domain};
    return 301 https://$server_name$request_uri;
}}

server {{
    listen 443 ssl http2;
    server_name {domain} www.{domain};

    ssl_certificate {paths["fullchain_path"]};
    ssl_certificate_key {paths["privkey_path"]};

{_site_body(web_root, php_fpm_socket)}
}}
"""


def render_placeholder_index(domain):
    """Default index.html written into a new web root"""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Welcome to {domain}</title>
</head>
<body>
    <h1>Welcome to {domain}</h1>
    <p>Your site is now configured and ready!</p>
</body>
</html>
"""
