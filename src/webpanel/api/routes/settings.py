# src/webpanel/api/routes/settings.py
"""
API routes for panel settings and host information
"""

import platform
import socket
import time
from datetime import datetime

import psutil
from flask import jsonify
from flask_jwt_extended import jwt_required

from ... import __version__
from ..utils import APIResponse, check, get_json_body, handle_api_errors
from ..validators import SettingsValidator


def get_system_info():
    """Host facts for the settings page"""
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage("/")

    return {
        "panelVersion": __version__,
        "pythonVersion": platform.python_version(),
        "platform": platform.system().lower(),
        "architecture": platform.machine(),
        "hostname": socket.gethostname(),
        "uptime": int(time.time() - psutil.boot_time()),
        "memory": {
            "total": memory.total,
            "free": memory.available,
            "used": memory.total - memory.available,
        },
        "disk": {"total": disk.total, "free": disk.free, "used": disk.used},
        "cpus": psutil.cpu_count(),
        "loadAverage": list(psutil.getloadavg()),
    }


def register_settings_routes(app, deps):
    """Register settings routes"""
    logger = deps["logger"]
    settings_store = deps["settings_store"]
    dns_client = deps["dns_client"]

    @app.route("/api/settings/cloudflare", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_cloudflare_settings():
        return APIResponse.success({"cloudflare": settings_store.masked_cloudflare_settings()})

    @app.route("/api/settings/cloudflare", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def save_cloudflare_settings():
        data = get_json_body()
        check(SettingsValidator.validate_cloudflare_request(data))

        settings_store.save_cloudflare_settings(
            data["apiToken"], data.get("zoneId"), data.get("email")
        )
        return APIResponse.success(message="Settings saved successfully")

    @app.route("/api/settings/cloudflare/test", methods=["POST"])
    @handle_api_errors(logger)
    def test_cloudflare_settings():
        data = get_json_body()
        api_token = data.get("apiToken")
        if not api_token or not isinstance(api_token, str):
            return APIResponse.bad_request("API Token is required")

        result = dns_client.test_connection(api_token.strip(), data.get("email"))
        if not result["success"]:
            return APIResponse.bad_request(result["error"])

        return APIResponse.success(
            {"zones": result["zones"], "zonesCount": result["zonesCount"]}, result["message"]
        )

    @app.route("/api/settings/system", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_system_settings():
        return APIResponse.success({"system": get_system_info()})

    @app.route("/api/settings/export", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def export_settings():
        export = settings_store.export_settings()
        export["exportedAt"] = datetime.now().isoformat()

        response = jsonify(export)
        response.headers["Content-Disposition"] = "attachment; filename=panel-settings.json"
        return response
