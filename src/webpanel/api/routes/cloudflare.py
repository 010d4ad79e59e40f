# src/webpanel/api/routes/cloudflare.py
"""
API routes for Cloudflare zones and DNS records
"""

from flask_jwt_extended import jwt_required

from ..utils import APIResponse, check, get_json_body, handle_api_errors
from ..validators import DNSRecordValidator


def _record_payload(data):
    record = {
        "type": data["type"].upper(),
        "name": data["name"].strip(),
        "content": data["content"].strip(),
        "ttl": int(data.get("ttl", 1)),
        "proxied": bool(data.get("proxied", False)),
    }
    if "priority" in data:
        record["priority"] = int(data["priority"])
    return record


def register_cloudflare_routes(app, deps):
    """Register Cloudflare routes"""
    logger = deps["logger"]
    dns_client = deps["dns_client"]

    @app.route("/api/cloudflare/zones", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def list_zones():
        payload = dns_client.list_zones() or {}
        return APIResponse.success({"zones": payload.get("result") or []})

    @app.route("/api/cloudflare/zones/<zone_id>/dns", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def list_zone_records(zone_id):
        payload = dns_client.list_records(zone_id) or {}
        return APIResponse.success({"records": payload.get("result") or []})

    @app.route("/api/cloudflare/zones/<zone_id>/dns", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def create_zone_record(zone_id):
        data = get_json_body()
        check(DNSRecordValidator.validate_record(data))

        payload = dns_client.create_record(zone_id, _record_payload(data)) or {}
        return APIResponse.created({"record": payload.get("result")}, "DNS record created")

    @app.route("/api/cloudflare/zones/<zone_id>/dns/<record_id>", methods=["PUT"])
    @jwt_required()
    @handle_api_errors(logger)
    def update_zone_record(zone_id, record_id):
        data = get_json_body()
        check(DNSRecordValidator.validate_record(data))

        payload = dns_client.update_record(zone_id, record_id, _record_payload(data)) or {}
        return APIResponse.success({"record": payload.get("result")}, "DNS record updated")

    @app.route("/api/cloudflare/zones/<zone_id>/dns/<record_id>", methods=["DELETE"])
    @jwt_required()
    @handle_api_errors(logger)
    def delete_zone_record(zone_id, record_id):
        dns_client.delete_record(zone_id, record_id)
        return APIResponse.success({"id": record_id}, "DNS record deleted")

    @app.route("/api/cloudflare/test", methods=["GET"])
    @handle_api_errors(logger)
    def test_cloudflare():
        result = dns_client.test_connection()
        if not result["success"]:
            return APIResponse.error(result["error"], 502)

        return APIResponse.success(
            {"zones": result["zonesCount"]}, "Cloudflare API connection successful"
        )
