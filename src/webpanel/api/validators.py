# src/webpanel/api/validators.py - Request validation
DNS_RECORD_TYPES = ("A", "AAAA", "CNAME", "MX", "TXT", "SRV", "NS", "PTR")


def _is_bool(value):
    return value is None or isinstance(value, bool)


def _is_string_list(value):
    return value is None or (
        isinstance(value, list) and all(isinstance(item, str) for item in value)
    )


class SiteValidator:
    """Validate site-related requests"""

    @staticmethod
    def validate_create_request(data):
        if not data:
            return False, "Request data is required"

        domain = data.get("domain")
        if not domain or not isinstance(domain, str):
            return False, "Domain is required"

        for field in ("enableSSL", "enableCloudflare"):
            if not _is_bool(data.get(field)):
                return False, f"{field} must be a boolean"

        server_ip = data.get("serverIP")
        if server_ip is not None and not isinstance(server_ip, str):
            return False, "serverIP must be a string"

        return True, None

    @staticmethod
    def validate_status_request(data):
        if not data or not isinstance(data.get("status"), str):
            return False, "Status is required"
        return True, None


class DNSRecordValidator:
    """Validate Cloudflare record payloads"""

    @staticmethod
    def validate_record(data):
        if not data:
            return False, "Request data is required"

        for field in ("type", "name", "content"):
            if not data.get(field) or not isinstance(data[field], str):
                return False, f"Missing required field: {field}"

        if data["type"].upper() not in DNS_RECORD_TYPES:
            return False, f"type must be one of: {', '.join(DNS_RECORD_TYPES)}"

        if "ttl" in data:
            try:
                if int(data["ttl"]) < 1:
                    return False, "ttl must be positive"
            except (ValueError, TypeError):
                return False, "ttl must be a valid integer"

        if "priority" in data:
            try:
                if int(data["priority"]) < 0:
                    return False, "priority cannot be negative"
            except (ValueError, TypeError):
                return False, "priority must be a valid integer"

        if not _is_bool(data.get("proxied")):
            return False, "proxied must be a boolean"

        return True, None


class EmailValidator:
    """Validate email domain, account and alias requests"""

    @staticmethod
    def validate_domain_request(data):
        if not data or not data.get("domain") or not isinstance(data["domain"], str):
            return False, "Domain is required"
        return True, None

    @staticmethod
    def validate_domain_update(data):
        if not _is_bool(data.get("isActive")):
            return False, "isActive must be a boolean"

        for field in ("spfRecord", "dmarcRecord"):
            if data.get(field) is not None and not isinstance(data[field], str):
                return False, f"{field} must be a string"

        max_accounts = data.get("maxAccounts")
        if max_accounts is not None and (isinstance(max_accounts, bool) or not isinstance(max_accounts, int)):
            return False, "maxAccounts must be a whole number"

        catch_all = data.get("catchAll")
        if catch_all is not None:
            if not isinstance(catch_all, dict):
                return False, "catchAll must be an object"
            if not _is_bool(catch_all.get("enabled")):
                return False, "catchAll.enabled must be a boolean"
            destination = catch_all.get("destination")
            if destination is not None and not isinstance(destination, str):
                return False, "catchAll.destination must be a string"

        return True, None

    @staticmethod
    def validate_account_request(data):
        if not data:
            return False, "Request data is required"

        for field in ("email", "password"):
            if not data.get(field) or not isinstance(data[field], str):
                return False, f"Missing required field: {field}"

        return EmailValidator.validate_account_update(data)

    @staticmethod
    def validate_account_update(data):
        if not _is_bool(data.get("isActive")):
            return False, "isActive must be a boolean"

        for field in ("aliases", "forwards"):
            if not _is_string_list(data.get(field)):
                return False, f"{field} must be a list of addresses"

        return True, None

    @staticmethod
    def validate_password_request(data):
        if not data or not isinstance(data.get("password"), str):
            return False, "Password is required"
        return True, None

    @staticmethod
    def validate_alias_request(data):
        if not data:
            return False, "Request data is required"

        for field in ("alias", "destination"):
            if not data.get(field) or not isinstance(data[field], str):
                return False, f"Missing required field: {field}"

        return True, None


class SettingsValidator:
    """Validate settings requests"""

    @staticmethod
    def validate_cloudflare_request(data):
        if not data:
            return False, "Request data is required"

        token = data.get("apiToken")
        if not token or not isinstance(token, str) or not token.strip():
            return False, "API Token is required"

        for field in ("zoneId", "email"):
            if data.get(field) is not None and not isinstance(data[field], str):
                return False, f"{field} must be a string"

        return True, None
