# src/webpanel/api/app.py
"""
Web Panel API
Flask application wiring: CORS, JWT verification, error handling and route modules
"""

import secrets
from datetime import datetime, timedelta

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from .. import __version__
from .middleware import setup_error_handlers, setup_jwt_handlers, setup_logging_middleware
from .routes import register_all_routes


class PanelAPI:
    """Flask application holding the panel's service dependencies"""

    def __init__(
        self,
        site_manager,
        email_service,
        dns_client,
        settings_store,
        database,
        nginx_manager,
        config,
        logger,
    ):
        self.config = config
        self.logger = logger

        self.app = Flask(__name__)
        CORS(self.app, origins=config.get("allowed_origins", ["*"]))
        self._configure_jwt()

        # Store dependencies
        self.deps = {
            "site_manager": site_manager,
            "email_service": email_service,
            "dns_client": dns_client,
            "settings_store": settings_store,
            "database": database,
            "nginx_manager": nginx_manager,
            "config": config,
            "logger": logger,
        }

        setup_error_handlers(self.app)
        setup_logging_middleware(self.app, logger)
        self._register_core_routes()
        register_all_routes(self.app, self.deps)

    def _configure_jwt(self):
        secret = self.config.get("jwt_secret_key")
        if not secret:
            # Tokens signed with a random key stop verifying on restart
            self.logger.warning("jwt_secret_key is not set; using a random key for this process")
            secret = secrets.token_hex(32)

        self.app.config["JWT_SECRET_KEY"] = secret
        self.app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
            hours=self.config.get("jwt_expires_hours", 24)
        )
        self.jwt = JWTManager(self.app)
        setup_jwt_handlers(self.jwt)

    def _register_core_routes(self):
        @self.app.route("/", methods=["GET"])
        def root():
            return {
                "success": True,
                "data": {
                    "name": "Web Panel API",
                    "description": "Sites, DNS and email hosting administration",
                    "version": __version__,
                    "timestamp": datetime.now().isoformat(),
                },
            }

    def run(self, host="0.0.0.0", port=3001, debug=False):
        """Run the Flask development server"""
        self.logger.info(f"Starting Web Panel API v{__version__} on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug)


def create_app(config=None):
    """Application factory for WSGI servers (``gunicorn 'webpanel.api.app:create_app()'``)"""
    from ..panel import PanelApplication

    application = PanelApplication(config=config)
    application.database.setup()
    return application.create_api().app
