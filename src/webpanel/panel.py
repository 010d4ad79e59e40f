#!/usr/bin/env python3
"""
Web Panel
Main application entry point: wires the services together and exposes the CLI
"""

import argparse
import logging
import os
import sys
from datetime import timedelta

from flask import Flask
from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager, create_access_token

from . import __version__
from .api.app import PanelAPI
from .core.database import PanelDatabase
from .core.exceptions import PanelError
from .dns.cloudflare_client import CloudflareClient
from .hosting.nginx_manager import NginxManager
from .hosting.site_manager import SiteManager
from .hosting.ssl_manager import SSLManager
from .mail.email_service import EmailService
from .mail.mail_manager import MailManager
from .utils.config import Config
from .utils.logger import Logger
from .utils.settings_store import SettingsStore
from .utils.shell import CommandRunner


class PanelApplication:
    """Main panel application orchestrator"""

    def __init__(self, config_file=None, config=None, runner=None, dns_client=None):
        self.config = config or Config(config_file or os.getenv("PANEL_CONFIG"))
        self.logger = Logger(
            log_level=logging.DEBUG if self.config.get("debug_mode") else logging.INFO,
            log_dir=self.config.get("log_dir"),
        )

        self.runner = runner or CommandRunner(self.logger, self.config.get("command_timeout", 60))
        self.database = PanelDatabase(self.config, self.logger)
        self.settings_store = SettingsStore(self.config, self.logger)
        self.dns_client = dns_client or CloudflareClient(
            self.config, self.logger, self.settings_store
        )

        self.nginx_manager = NginxManager(self.config, self.logger, self.runner)
        self.ssl_manager = SSLManager(self.config, self.logger, self.runner)
        self.site_manager = SiteManager(
            self.config,
            self.logger,
            self.database,
            self.nginx_manager,
            self.ssl_manager,
            self.dns_client,
        )

        self.mail_manager = MailManager(self.config, self.logger, self.runner)
        self.email_service = EmailService(
            self.config, self.logger, self.database, self.mail_manager, Bcrypt()
        )

    def setup_system(self):
        """Create the panel's directories and database tables"""
        self.logger.info("Starting web panel setup...")

        errors = self.config.validate()
        if errors:
            for error in errors:
                self.logger.error(f"Configuration error: {error}")
            return False

        for key in ("web_root", "nginx_sites_dir", "nginx_enabled_dir"):
            os.makedirs(self.config.get(key), mode=0o755, exist_ok=True)

        self.database.setup()
        self.logger.info("Web panel setup completed successfully")
        return True

    def create_api(self):
        return PanelAPI(
            site_manager=self.site_manager,
            email_service=self.email_service,
            dns_client=self.dns_client,
            settings_store=self.settings_store,
            database=self.database,
            nginx_manager=self.nginx_manager,
            config=self.config,
            logger=self.logger,
        )

    def start_api_server(self, host=None, port=None):
        """Start the API server with the Flask development server"""
        self.database.setup()
        api = self.create_api()
        api.run(
            host=host or self.config.get("api_host"),
            port=port or self.config.get("api_port"),
            debug=self.config.get("debug_mode", False),
        )

    def issue_token(self, username):
        """Mint a bearer token signed with the configured JWT secret"""
        secret = self.config.get("jwt_secret_key")
        if not secret:
            raise PanelError("jwt_secret_key must be configured to issue tokens")

        app = Flask(__name__)
        app.config["JWT_SECRET_KEY"] = secret
        JWTManager(app)

        with app.app_context():
            return create_access_token(
                identity=str(username),
                expires_delta=timedelta(hours=self.config.get("jwt_expires_hours", 24)),
            )

    def show_status(self):
        """Show panel status"""
        print(f"\nWeb Panel Status v{__version__}")
        print("=" * 50)

        print(f"Web root: {self.config.get('web_root')}")
        print(f"Database: {self.config.get('database_path')}")
        print(f"Nginx: {'Running' if self.nginx_manager.is_running() else 'Stopped'}")

        if not self.database.is_connected():
            print("Database: Failed")
            return

        print("Database: Connected")
        print(f"Sites: {self.database.count_sites()} ({self.database.count_sites(ssl_only=True)} with SSL)")
        print(f"Email domains: {self.database.count_email_domains()}")
        print(f"Email accounts: {self.database.count_email_accounts()}")

        mail_status = self.mail_manager.test_configuration()
        print(f"Mail configuration: {'OK' if mail_status['success'] else mail_status['error']}")

    def list_sites(self):
        sites = self.site_manager.list_sites()
        print("\nSites:")
        if not sites:
            print("  No sites found")
            return

        for site in sites:
            ssl = "SSL" if site["ssl_enabled"] else "no SSL"
            print(f"  {site['domain']} ({site['status']}, {ssl}) -> {site['path']}")


def main():
    parser = argparse.ArgumentParser(description=f"Web Panel v{__version__}")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--setup", action="store_true", help="Create directories and database")
    parser.add_argument("--api", action="store_true", help="Start API server")
    parser.add_argument("--status", action="store_true", help="Show panel status")
    parser.add_argument("--issue-token", metavar="USER", help="Print a bearer token for USER")
    parser.add_argument("--api-port", type=int, help="API server port")
    parser.add_argument("--api-host", help="API server host")
    parser.add_argument("--ssl", action="store_true", help="Issue a certificate (create-site)")

    parser.add_argument("command", nargs="?", help="create-site, delete-site or list-sites")
    parser.add_argument("domain", nargs="?", help="Domain name")

    args = parser.parse_args()

    try:
        app = PanelApplication(config_file=args.config)
    except Exception as e:
        print(f"FATAL: Failed to initialize application: {e}")
        sys.exit(1)

    try:
        if args.setup:
            sys.exit(0 if app.setup_system() else 1)

        elif args.api:
            app.start_api_server(host=args.api_host, port=args.api_port)

        elif args.status:
            app.show_status()

        elif args.issue_token:
            print(app.issue_token(args.issue_token))

        elif args.command == "create-site" and args.domain:
            app.database.setup()
            result = app.site_manager.create_site(args.domain, ssl_enabled=args.ssl)
            print(f"Created {result['site']['domain']} at {result['site']['path']}")

        elif args.command == "delete-site" and args.domain:
            site = app.database.get_site_by_domain(args.domain.strip().lower())
            if not site:
                print(f"Site not found: {args.domain}")
                sys.exit(1)
            result = app.site_manager.delete_site(site["id"])
            for warning in result["warnings"]:
                print(f"  warning: {warning} failed")
            print(f"Deleted {result['domain']}")

        elif args.command == "list-sites":
            app.list_sites()

        else:
            print(f"Web Panel v{__version__}")
            print("=" * 60)
            print("\nOptions:")
            print("  --setup                 Create directories and database")
            print("  --api                   Start API server")
            print("  --status                Show panel status")
            print("  --issue-token USER      Print a bearer token")
            print("\nCommands:")
            print("  create-site <domain> [--ssl]     Create a site")
            print("  delete-site <domain>             Delete a site")
            print("  list-sites                       List sites")

    except KeyboardInterrupt:
        print("\nShutdown requested")
        sys.exit(0)
    except PanelError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
