# src/webpanel/hosting/site_manager.py
"""
Site provisioning
Coordinates web root creation, nginx vhost activation, certificate issuance
and Cloudflare DNS records into site-level create / enable-SSL / delete operations
"""

import sqlite3

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.steps import BEST_EFFORT, FATAL, Step, failed_steps, run_steps
from ..core.validation import is_valid_domain, is_valid_ip, normalize_domain

SITE_STATUSES = ("active", "inactive", "suspended")


class SiteManager:
    """Create, update and delete websites"""

    def __init__(self, config, logger, database, nginx_manager, ssl_manager, dns_client):
        self.config = config
        self.logger = logger
        self.database = database
        self.nginx = nginx_manager
        self.ssl = ssl_manager
        self.dns = dns_client

    def list_sites(self):
        return self.database.list_sites()

    def get_site(self, site_id):
        site = self.database.get_site(site_id)
        if not site:
            raise NotFoundError("Site not found")
        return site

    def get_site_dns_records(self, site_id):
        self.get_site(site_id)
        return self.database.list_dns_records(site_id)

    def get_site_config(self, site_id):
        site = self.get_site(site_id)
        content = self.nginx.read_site_config(site["domain"])
        if content is None:
            raise NotFoundError(f"No nginx configuration found for {site['domain']}")
        return {"domain": site["domain"], "path": site["nginx_config"], "content": content}

    def create_site(self, domain, ssl_enabled=False, cloudflare_enabled=False,
                    server_ip=None, owner=None):
        """Provision a new site.

        Validation and the uniqueness check happen before anything touches
        the filesystem. Web root, vhost, link, nginx test/reload (and the
        certificate when TLS is requested) are fatal steps; the site row is
        written only once they all succeed. Cloudflare records are created
        afterwards on a best-effort basis, one reference row per record
        Cloudflare accepted.
        """
        domain = normalize_domain(domain)
        if not domain:
            raise ValidationError("Domain is required")
        if not is_valid_domain(domain):
            raise ValidationError(f"Invalid domain: {domain}")

        server_ip = (server_ip or "").strip()
        if cloudflare_enabled:
            if not server_ip:
                raise ValidationError("Server IP is required when Cloudflare is enabled")
            if not is_valid_ip(server_ip):
                raise ValidationError(f"Invalid server IP: {server_ip}")

        if self.database.get_site_by_domain(domain):
            raise ConflictError("Site already exists")

        self.logger.info(f"Creating site: {domain}")

        steps = [
            Step("create web root", lambda: self.nginx.create_web_root(domain)),
            Step("write nginx config", lambda: self.nginx.write_site_config(domain)),
            Step("enable nginx site", lambda: self.nginx.enable_site(domain)),
            Step("test and reload nginx", self.nginx.test_and_reload),
        ]
        if ssl_enabled:
            # Certificate issuance needs the plain vhost live first
            steps += [
                Step("issue certificate", lambda: self.ssl.issue_certificate(domain)),
                Step(
                    "write TLS nginx config",
                    lambda: self.nginx.write_site_config(domain, ssl_enabled=True),
                ),
                Step("test and reload nginx with TLS", self.nginx.test_and_reload),
            ]

        try:
            run_steps(domain, steps, self.logger)
        except Exception as e:
            self.logger.log_provisioning(domain, "create_site", "failed", str(e))
            raise

        try:
            site_id = self.database.create_site(
                domain,
                path=self.nginx.site_web_root(domain),
                nginx_config=self.nginx.config_path(domain),
                ssl_enabled=ssl_enabled,
                cloudflare_enabled=cloudflare_enabled,
                owner=owner,
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Site already exists")

        if ssl_enabled:
            self._record_ssl_expiry(site_id, domain)

        cloudflare_records = []
        if cloudflare_enabled:
            cloudflare_records = self._create_dns_records(site_id, domain, server_ip)

        self.logger.log_provisioning(
            domain,
            "create_site",
            "success",
            "Site created",
            {"ssl_enabled": ssl_enabled, "dns_records": len(cloudflare_records)},
        )

        return {"site": self.database.get_site(site_id), "cloudflare_records": cloudflare_records}

    def _create_dns_records(self, site_id, domain, server_ip):
        try:
            results = self.dns.create_site_records(domain, server_ip)
        except Exception as e:
            self.logger.error(f"Cloudflare error for {domain}: {e}")
            return []

        for response in results:
            record = (response or {}).get("result") or {}
            if not (response or {}).get("success") or not record.get("id"):
                continue
            try:
                self.database.add_dns_record(
                    site_id,
                    record_type=record.get("type", "A"),
                    name=record.get("name"),
                    content=record.get("content"),
                    ttl=record.get("ttl") or 300,
                    priority=record.get("priority") or 0,
                    cloudflare_id=record["id"],
                )
            except sqlite3.Error as e:
                self.logger.error(f"Failed to store DNS record {record.get('name')}: {e}")

        return results

    def _record_ssl_expiry(self, site_id, domain):
        expiry = self.ssl.get_certificate_expiry(domain)
        if expiry:
            self.database.update_site(site_id, ssl_expiry=expiry.isoformat())

    def enable_ssl(self, site_id):
        """Issue a certificate for an existing site and switch its vhost to TLS.

        A site that already has TLS is left alone. On failure the site row
        stays unchanged.
        """
        site = self.get_site(site_id)
        domain = site["domain"]

        if site["ssl_enabled"]:
            self.logger.info(f"SSL already enabled for {domain}")
            return {"site": site, "already_enabled": True}

        steps = [
            Step("issue certificate", lambda: self.ssl.issue_certificate(domain)),
            Step(
                "write TLS nginx config",
                lambda: self.nginx.write_site_config(domain, ssl_enabled=True),
            ),
            Step("test and reload nginx", self.nginx.test_and_reload),
        ]

        try:
            run_steps(domain, steps, self.logger)
        except Exception as e:
            self.logger.log_provisioning(domain, "enable_ssl", "failed", str(e))
            raise

        self.database.update_site(site_id, ssl_enabled=True)
        self._record_ssl_expiry(site_id, domain)
        self.logger.log_provisioning(domain, "enable_ssl", "success", "SSL enabled")

        return {"site": self.database.get_site(site_id), "already_enabled": False}

    def update_status(self, site_id, status):
        """Move a site between active, inactive and suspended"""
        if status not in SITE_STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(SITE_STATUSES)}")

        site = self.get_site(site_id)
        domain = site["domain"]
        if site["status"] == status:
            return site

        if status == "active":
            toggle = Step("enable nginx site", lambda: self.nginx.enable_site(domain))
        else:
            toggle = Step("disable nginx site", lambda: self.nginx.disable_site(domain))

        run_steps(domain, [toggle, Step("test and reload nginx", self.nginx.test_and_reload)], self.logger)

        self.database.update_site(site_id, status=status)
        self.logger.log_provisioning(domain, "update_status", "success", f"Status set to {status}")
        return self.database.get_site(site_id)

    def delete_site(self, site_id):
        """Remove a site's DNS records, vhost files and metadata.

        DNS deletion and file removal are best-effort; the nginx
        test/reload is fatal. Nothing is compensated if a later step fails.
        The web root stays on disk.
        """
        site = self.get_site(site_id)
        domain = site["domain"]

        steps = []
        for record in self.database.list_dns_records(site_id):
            if record["cloudflare_id"]:
                steps.append(
                    Step(
                        f"delete DNS record {record['name']}",
                        _bind(self.dns.delete_record, None, record["cloudflare_id"]),
                        BEST_EFFORT,
                    )
                )

        steps += [
            Step("disable nginx site", lambda: self.nginx.disable_site(domain), BEST_EFFORT),
            Step("remove nginx config", lambda: self.nginx.remove_site_config(domain), BEST_EFFORT),
            Step("test and reload nginx", self.nginx.test_and_reload, FATAL),
        ]

        try:
            outcomes = run_steps(domain, steps, self.logger)
        except Exception as e:
            self.logger.log_provisioning(domain, "delete_site", "failed", str(e))
            raise

        self.database.delete_dns_records(site_id)
        self.database.delete_site(site_id)

        warnings = failed_steps(outcomes)
        self.logger.log_provisioning(domain, "delete_site", "success", "Site deleted", warnings)
        return {"domain": domain, "deleted": True, "warnings": warnings}


def _bind(func, *args):
    return lambda: func(*args)
