# src/webpanel/api/routes/health.py - Health check routes
from datetime import datetime
from flask_jwt_extended import jwt_required

from ... import __version__
from ..utils import APIResponse, handle_api_errors


def register_health_routes(app, deps):
    """Register health check routes"""

    @app.route("/api/health", methods=["GET"])
    @handle_api_errors(deps["logger"])
    def health_check():
        return APIResponse.success(
            {
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "version": __version__,
                "service": "Web Panel API",
            }
        )

    @app.route("/api/status", methods=["GET"])
    @jwt_required()
    @handle_api_errors(deps["logger"])
    def get_panel_status():
        database = deps["database"]
        connected = database.is_connected()

        status = {
            "nginx_running": deps["nginx_manager"].is_running(),
            "database_connected": connected,
            "timestamp": datetime.now().isoformat(),
        }
        if connected:
            status.update(
                {
                    "sites": database.count_sites(),
                    "ssl_sites": database.count_sites(ssl_only=True),
                    "email_domains": database.count_email_domains(),
                    "email_accounts": database.count_email_accounts(),
                }
            )

        return APIResponse.success({"status": status})
