# src/webpanel/hosting/ssl_manager.py
"""
SSL Certificate Manager using Let's Encrypt
"""

import os
from datetime import datetime

from ..core.exceptions import ExternalToolError
from .nginx_config import certificate_paths


class SSLManager:
    """Issue certificates through certbot's nginx plugin and read their expiry"""

    def __init__(self, config, logger, runner):
        self.config = config
        self.logger = logger
        self.runner = runner
        self.live_dir = config.get("letsencrypt_live_dir")
        self.timeout = config.get("certbot_timeout", 300)

    def contact_email(self, domain):
        return f"admin@{domain}"

    def issue_certificate(self, domain):
        """Request a certificate for the domain and its www variant.

        Uses certonly so certbot leaves the vhost alone; the panel writes
        the TLS server blocks itself.
        """
        cmd = [
            "certbot",
            "certonly",
            "--nginx",
            "-d",
            domain,
            "-d",
            f"www.{domain}",
            "--non-interactive",
            "--agree-tos",
            "--email",
            self.contact_email(domain),
        ]

        self.logger.info(f"Setting up SSL for {domain}")
        try:
            self.runner.run(cmd, timeout=self.timeout)
        except ExternalToolError as e:
            self.logger.error(f"SSL setup failed for {domain}: {e}")
            raise ExternalToolError(
                f"Failed to enable SSL: {e.output or e.message}",
                command=e.command,
                returncode=e.returncode,
                output=e.output,
            ) from e

        self.logger.info(f"SSL certificate installed for {domain}")
        return {
            "domain": domain,
            "email": self.contact_email(domain),
            "cert_path": certificate_paths(domain, self.live_dir)["fullchain_path"],
            "installed_at": datetime.now().isoformat(),
        }

    def get_certificate_expiry(self, domain):
        """Expiry of the live certificate, or None when it cannot be read"""
        cert_path = certificate_paths(domain, self.live_dir)["fullchain_path"]
        if not os.path.exists(cert_path):
            return None

        try:
            result = self.runner.run(
                ["openssl", "x509", "-enddate", "-noout", "-in", cert_path],
                timeout=5,
            )
            return parse_openssl_enddate(result.stdout)
        except (ExternalToolError, ValueError) as e:
            self.logger.warning(f"Could not parse cert details for {domain}: {e}")
            return None


def parse_openssl_enddate(output):
    """Parse ``notAfter=Jan  1 00:00:00 2030 GMT`` into a datetime"""
    expiry_str = output.strip().replace("notAfter=", "")
    return datetime.strptime(expiry_str, "%b %d %H:%M:%S %Y %Z")
