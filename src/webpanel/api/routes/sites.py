# src/webpanel/api/routes/sites.py
"""
API routes for website management
"""

from flask_jwt_extended import jwt_required

from ..serializers import serialize_dns_record, serialize_site
from ..utils import APIResponse, check, current_owner, get_json_body, handle_api_errors
from ..validators import SiteValidator


def register_site_routes(app, deps):
    """Register site routes"""
    logger = deps["logger"]
    site_manager = deps["site_manager"]

    @app.route("/api/sites", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def list_sites():
        sites = [serialize_site(site) for site in site_manager.list_sites()]
        return APIResponse.success({"sites": sites, "count": len(sites)})

    @app.route("/api/sites", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def create_site():
        data = get_json_body()
        check(SiteValidator.validate_create_request(data))

        result = site_manager.create_site(
            data["domain"],
            ssl_enabled=bool(data.get("enableSSL")),
            cloudflare_enabled=bool(data.get("enableCloudflare")),
            server_ip=data.get("serverIP"),
            owner=current_owner(),
        )

        site = serialize_site(result["site"])
        return APIResponse.created(
            {
                **site,
                "site": site,
                "cloudflareRecords": result["cloudflare_records"],
            },
            "Site created successfully",
        )

    @app.route("/api/sites/<int:site_id>", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_site(site_id):
        return APIResponse.success({"site": serialize_site(site_manager.get_site(site_id))})

    @app.route("/api/sites/<int:site_id>", methods=["DELETE"])
    @jwt_required()
    @handle_api_errors(logger)
    def delete_site(site_id):
        result = site_manager.delete_site(site_id)
        return APIResponse.success(
            {"domain": result["domain"], "warnings": result["warnings"]},
            "Site deleted successfully",
        )

    @app.route("/api/sites/<int:site_id>/ssl", methods=["PUT"])
    @jwt_required()
    @handle_api_errors(logger)
    def enable_site_ssl(site_id):
        result = site_manager.enable_ssl(site_id)
        message = "SSL already enabled" if result["already_enabled"] else "SSL enabled successfully"
        return APIResponse.success(
            {"site": serialize_site(result["site"]), "alreadyEnabled": result["already_enabled"]},
            message,
        )

    @app.route("/api/sites/<int:site_id>/status", methods=["PUT"])
    @jwt_required()
    @handle_api_errors(logger)
    def update_site_status(site_id):
        data = get_json_body()
        check(SiteValidator.validate_status_request(data))

        site = site_manager.update_status(site_id, data["status"])
        return APIResponse.success({"site": serialize_site(site)}, "Site status updated")

    @app.route("/api/sites/<int:site_id>/dns", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_site_dns(site_id):
        records = [serialize_dns_record(r) for r in site_manager.get_site_dns_records(site_id)]
        return APIResponse.success({"records": records})

    @app.route("/api/sites/<int:site_id>/config", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_site_config(site_id):
        config = site_manager.get_site_config(site_id)
        return APIResponse.success(
            {"domain": config["domain"], "path": config["path"], "config": config["content"]}
        )
