# src/webpanel/dns/cloudflare_client.py
"""
Cloudflare v4 API client
Zone listing and DNS record CRUD. Single attempt per call, fixed timeout, no retries.
"""

import requests

from ..core.exceptions import ProviderError, ValidationError

AUTH_FAILED = "Authentication failed - check your API token"
PERMISSION_DENIED = "Invalid API token or insufficient permissions"
NETWORK_FAILED = "Network connection failed - check your internet connection"


class CloudflareClient:
    """Thin wrapper over the Cloudflare REST API"""

    def __init__(self, config, logger, settings_store, session=None):
        self.config = config
        self.logger = logger
        self.settings_store = settings_store
        self.base_url = config.get("cloudflare_api_url").rstrip("/")
        self.timeout = config.get("cloudflare_timeout", 10)
        self.session = session or requests.Session()

    def _credentials(self):
        return self.settings_store.get_cloudflare_settings()

    def _headers(self, api_token=None, email=None):
        if api_token is None:
            settings = self._credentials()
            api_token = settings["apiToken"]
            email = settings["email"]

        if not api_token:
            raise ValidationError("Cloudflare API token is not configured")

        headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        if email:
            headers["X-Auth-Email"] = email
        return headers

    def _zone(self, zone_id):
        zone_id = zone_id or self._credentials()["zoneId"]
        if not zone_id:
            raise ValidationError("Cloudflare zone ID is not configured")
        return zone_id

    def _request(self, method, path, action, json=None, headers=None):
        url = f"{self.base_url}{path}"
        headers = headers or self._headers()

        try:
            response = self.session.request(
                method, url, headers=headers, json=json, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            self.logger.error(f"Cloudflare {action} failed: {e}")
            raise ProviderError(f"Failed to {action}: {NETWORK_FAILED}") from e
        except requests.RequestException as e:
            self.logger.error(f"Cloudflare {action} failed: {e}")
            raise ProviderError(f"Failed to {action}: {e}") from e

        payload = _json_or_none(response)

        if response.status_code >= 400 or (payload is not None and not payload.get("success", True)):
            message = _provider_message(payload) or f"HTTP {response.status_code}"
            self.logger.error(f"Cloudflare {action} failed: {message}")
            raise ProviderError(f"Failed to {action}: {message}", http_status=response.status_code)

        return payload

    def list_zones(self):
        return self._request("GET", "/zones", "get zones")

    def list_records(self, zone_id=None):
        zone_id = self._zone(zone_id)
        return self._request("GET", f"/zones/{zone_id}/dns_records", "get DNS records")

    def create_record(self, zone_id, record):
        zone_id = self._zone(zone_id)
        return self._request(
            "POST", f"/zones/{zone_id}/dns_records", "create DNS record", json=record
        )

    def update_record(self, zone_id, record_id, record):
        zone_id = self._zone(zone_id)
        return self._request(
            "PUT", f"/zones/{zone_id}/dns_records/{record_id}", "update DNS record", json=record
        )

    def delete_record(self, zone_id, record_id):
        zone_id = self._zone(zone_id)
        return self._request(
            "DELETE", f"/zones/{zone_id}/dns_records/{record_id}", "delete DNS record"
        )

    def create_site_records(self, domain, server_ip):
        """Create apex and www A records; each record succeeds or fails on its own"""
        records = [
            {"type": "A", "name": domain, "content": server_ip},
            {"type": "A", "name": f"www.{domain}", "content": server_ip},
        ]

        results = []
        for record in records:
            try:
                results.append(self.create_record(None, record))
            except (ProviderError, ValidationError) as e:
                self.logger.warning(f"Failed to create record for {record['name']}: {e}")
        return results

    def test_connection(self, api_token=None, email=None):
        """List zones with the given (or stored) credentials and classify any failure.

        Returns ``{"success": True, "zones": [...]}`` or
        ``{"success": False, "error": <message>}``.
        """
        try:
            headers = self._headers(api_token, email) if api_token else self._headers()
        except ValidationError as e:
            return {"success": False, "error": str(e)}

        try:
            response = self.session.get(
                f"{self.base_url}/zones", headers=headers, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout):
            return {"success": False, "error": NETWORK_FAILED}
        except requests.RequestException as e:
            return {"success": False, "error": str(e) or "Connection test failed"}

        payload = _json_or_none(response)

        if response.status_code == 401:
            return {"success": False, "error": AUTH_FAILED}
        if response.status_code == 403:
            return {"success": False, "error": PERMISSION_DENIED}
        if response.status_code >= 400 or not payload or not payload.get("success"):
            return {
                "success": False,
                "error": _provider_message(payload) or "API connection failed",
            }

        zones = [
            {"id": zone.get("id"), "name": zone.get("name"), "status": zone.get("status")}
            for zone in payload.get("result") or []
        ]
        return {
            "success": True,
            "zones": zones,
            "zonesCount": len(zones),
            "message": f"Successfully connected! Found {len(zones)} zones.",
        }


def _json_or_none(response):
    try:
        return response.json()
    except ValueError:
        return None


def _provider_message(payload):
    if not payload:
        return None
    errors = payload.get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("message")
    return None
