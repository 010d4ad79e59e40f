# src/webpanel/api/routes/email.py
"""
API routes for email domains, accounts and aliases
"""

from flask import request
from flask_jwt_extended import jwt_required

from ..serializers import serialize_email_account, serialize_email_domain
from ..utils import APIResponse, check, current_owner, get_json_body, handle_api_errors
from ..validators import EmailValidator


def register_email_routes(app, deps):
    """Register email routes"""
    logger = deps["logger"]
    email_service = deps["email_service"]

    # Domains

    @app.route("/api/email/domains", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def list_email_domains():
        domains = [serialize_email_domain(d) for d in email_service.list_domains()]
        return APIResponse.success({"domains": domains})

    @app.route("/api/email/domains", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def create_email_domain():
        data = get_json_body()
        check(EmailValidator.validate_domain_request(data))

        domain = email_service.create_domain(
            data["domain"], owner=current_owner(), max_accounts=data.get("maxAccounts")
        )
        return APIResponse.created(
            {
                "domain": serialize_email_domain(domain),
                "dkimPublicKey": domain["dkim_public_key"],
            },
            "Email domain created successfully",
        )

    @app.route("/api/email/domains/<int:domain_id>", methods=["PUT"])
    @jwt_required()
    @handle_api_errors(logger)
    def update_email_domain(domain_id):
        data = get_json_body()
        check(EmailValidator.validate_domain_update(data))

        domain = email_service.update_domain(
            domain_id,
            max_accounts=data.get("maxAccounts"),
            is_active=data.get("isActive"),
            spf_record=data.get("spfRecord"),
            dmarc_record=data.get("dmarcRecord"),
            catch_all=data.get("catchAll"),
        )
        return APIResponse.success(
            {"domain": serialize_email_domain(domain)}, "Email domain updated successfully"
        )

    @app.route("/api/email/domains/<int:domain_id>", methods=["DELETE"])
    @jwt_required()
    @handle_api_errors(logger)
    def delete_email_domain(domain_id):
        result = email_service.delete_domain(domain_id)
        return APIResponse.success(
            {"domain": result["domain"], "warnings": result["warnings"]},
            "Email domain deleted successfully",
        )

    # Accounts

    @app.route("/api/email/accounts", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def list_email_accounts():
        accounts = email_service.list_accounts(request.args.get("domain"))
        return APIResponse.success({"accounts": [serialize_email_account(a) for a in accounts]})

    @app.route("/api/email/accounts", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def create_email_account():
        data = get_json_body()
        check(EmailValidator.validate_account_request(data))

        result = email_service.create_account(
            data["email"],
            data["password"],
            quota=data.get("quota"),
            aliases=data.get("aliases"),
            forwards=data.get("forwards"),
            owner=current_owner(),
        )
        return APIResponse.created(
            {
                "account": serialize_email_account(result["account"]),
                "warnings": result["warnings"],
            },
            "Email account created successfully",
        )

    @app.route("/api/email/accounts/<int:account_id>", methods=["PUT"])
    @jwt_required()
    @handle_api_errors(logger)
    def update_email_account(account_id):
        data = get_json_body()
        check(EmailValidator.validate_account_update(data))

        account = email_service.update_account(
            account_id,
            quota=data.get("quota"),
            is_active=data.get("isActive"),
            aliases=data.get("aliases"),
            forwards=data.get("forwards"),
        )
        return APIResponse.success(
            {"account": serialize_email_account(account)}, "Email account updated successfully"
        )

    @app.route("/api/email/accounts/<int:account_id>", methods=["DELETE"])
    @jwt_required()
    @handle_api_errors(logger)
    def delete_email_account(account_id):
        result = email_service.delete_account(account_id)
        return APIResponse.success(
            {"email": result["email"], "warnings": result["warnings"]},
            "Email account deleted successfully",
        )

    @app.route("/api/email/accounts/<int:account_id>/password", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def change_email_password(account_id):
        data = get_json_body()
        check(EmailValidator.validate_password_request(data))

        email_service.change_password(account_id, data["password"])
        return APIResponse.success(message="Password changed successfully")

    @app.route("/api/email/accounts/<int:account_id>/usage", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_email_usage(account_id):
        return APIResponse.success({"usage": email_service.get_usage(account_id)})

    # Aliases

    @app.route("/api/email/aliases", methods=["POST"])
    @jwt_required()
    @handle_api_errors(logger)
    def add_email_alias():
        data = get_json_body()
        check(EmailValidator.validate_alias_request(data))

        result = email_service.add_alias(data["alias"], data["destination"])
        return APIResponse.created(result, "Alias added successfully")

    @app.route("/api/email/aliases/<alias>", methods=["DELETE"])
    @jwt_required()
    @handle_api_errors(logger)
    def remove_email_alias(alias):
        return APIResponse.success(email_service.remove_alias(alias), "Alias removed successfully")

    @app.route("/api/email/status", methods=["GET"])
    @jwt_required()
    @handle_api_errors(logger)
    def get_email_status():
        return APIResponse.success({"status": email_service.get_status()})
