# src/webpanel/api/serializers.py
"""
Row to payload conversion
Database rows are snake_case; API payloads use camelCase keys
"""


def serialize_site(site):
    return {
        "id": site["id"],
        "domain": site["domain"],
        "path": site["path"],
        "nginxConfig": site["nginx_config"],
        "sslEnabled": site["ssl_enabled"],
        "cloudflareEnabled": site["cloudflare_enabled"],
        "status": site["status"],
        "sslExpiry": site["ssl_expiry"],
        "owner": site["owner"],
        "createdAt": site["created_at"],
        "updatedAt": site["updated_at"],
    }


def serialize_dns_record(record):
    return {
        "id": record["id"],
        "siteId": record["site_id"],
        "recordType": record["record_type"],
        "name": record["name"],
        "content": record["content"],
        "ttl": record["ttl"],
        "priority": record["priority"],
        "cloudflareId": record["cloudflare_id"],
        "isActive": record["is_active"],
        "createdAt": record["created_at"],
    }


def serialize_email_domain(domain):
    """The DKIM private key never leaves the server"""
    return {
        "id": domain["id"],
        "domain": domain["domain"],
        "isActive": domain["is_active"],
        "maxAccounts": domain["max_accounts"],
        "currentAccounts": domain["current_accounts"],
        "dkimEnabled": domain["dkim_enabled"],
        "dkimPublicKey": domain["dkim_public_key"],
        "spfRecord": domain["spf_record"],
        "dmarcRecord": domain["dmarc_record"],
        "catchAll": {
            "enabled": domain["catch_all_enabled"],
            "destination": domain["catch_all_destination"],
        },
        "owner": domain["owner"],
        "createdAt": domain["created_at"],
        "updatedAt": domain["updated_at"],
    }


def serialize_email_account(account):
    return {
        "id": account["id"],
        "email": account["email"],
        "domain": account["domain"],
        "quota": account["quota"],
        "usedQuota": account["used_quota"],
        "isActive": account["is_active"],
        "aliases": account["aliases"],
        "forwards": account["forwards"],
        "owner": account["owner"],
        "createdAt": account["created_at"],
        "updatedAt": account["updated_at"],
    }
