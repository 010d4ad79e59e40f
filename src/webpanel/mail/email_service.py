# src/webpanel/mail/email_service.py
"""
Email domain and account management
Request-level validation and metadata bookkeeping around MailManager
"""

import sqlite3

from flask_bcrypt import Bcrypt

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.steps import failed_steps
from ..core.validation import is_valid_domain, is_valid_email, normalize_domain, split_address


class EmailService:
    """Email domains, accounts and aliases"""

    def __init__(self, config, logger, database, mail_manager, bcrypt=None):
        self.config = config
        self.logger = logger
        self.database = database
        self.mail = mail_manager
        self.bcrypt = bcrypt or Bcrypt()
        self.min_password_length = config.get("min_password_length", 6)

    def hash_password(self, password):
        rounds = self.config.get("bcrypt_log_rounds", 12)
        return self.bcrypt.generate_password_hash(password, rounds).decode("utf-8")

    def _validate_password(self, password):
        if not password or len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters"
            )

    def _validate_quota(self, quota):
        try:
            quota = int(quota)
        except (TypeError, ValueError):
            raise ValidationError("Quota must be a whole number of megabytes")
        if quota < 0:
            raise ValidationError("Quota cannot be negative")
        return quota

    def _normalize_addresses(self, addresses, label):
        normalized = []
        for address in addresses or []:
            address = (address or "").strip().lower()
            if not address:
                continue
            if not is_valid_email(address):
                raise ValidationError(f"Invalid {label} address: {address}")
            normalized.append(address)
        return normalized

    def _check_aliases_free(self, aliases):
        for alias in aliases:
            if self.mail.has_alias(alias):
                raise ConflictError(f"Alias already exists: {alias}")

    # Domains

    def list_domains(self):
        return self.database.list_email_domains()

    def get_domain(self, domain_id):
        domain = self.database.get_email_domain(domain_id)
        if not domain:
            raise NotFoundError("Email domain not found")
        return domain

    def create_domain(self, domain, owner=None, max_accounts=None):
        """Register a mail domain and store its DKIM key material"""
        domain = normalize_domain(domain)
        if not domain or not is_valid_domain(domain):
            raise ValidationError("Valid domain is required")

        if max_accounts is None:
            max_accounts = self.config.get("email_max_accounts", 100)
        try:
            max_accounts = int(max_accounts)
        except (TypeError, ValueError):
            raise ValidationError("maxAccounts must be a whole number")
        if max_accounts < 1:
            raise ValidationError("maxAccounts must be at least 1")

        if self.database.get_email_domain_by_name(domain):
            raise ConflictError("Email domain already exists")

        try:
            dkim_keys = self.mail.register_domain(domain)
        except Exception as e:
            self.logger.log_provisioning(domain, "create_email_domain", "failed", str(e))
            raise

        try:
            domain_id = self.database.create_email_domain(
                domain,
                max_accounts=max_accounts,
                dkim_enabled=bool(dkim_keys),
                dkim_private_key=(dkim_keys or {}).get("privateKey"),
                dkim_public_key=(dkim_keys or {}).get("publicKey"),
                dmarc_record=f"v=DMARC1; p=quarantine; rua=mailto:dmarc@{domain}",
                owner=owner,
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Email domain already exists")

        self.logger.log_provisioning(domain, "create_email_domain", "success", "Email domain created")
        return self.database.get_email_domain(domain_id)

    def update_domain(self, domain_id, max_accounts=None, is_active=None,
                      spf_record=None, dmarc_record=None, catch_all=None):
        record = self.get_domain(domain_id)
        fields = {}

        if max_accounts is not None:
            try:
                max_accounts = int(max_accounts)
            except (TypeError, ValueError):
                raise ValidationError("maxAccounts must be a whole number")
            if max_accounts < max(1, record["current_accounts"]):
                raise ValidationError(
                    f"maxAccounts cannot be below the current account count ({record['current_accounts']})"
                )
            fields["max_accounts"] = max_accounts

        if is_active is not None:
            fields["is_active"] = bool(is_active)
        if spf_record is not None:
            fields["spf_record"] = spf_record.strip()
        if dmarc_record is not None:
            fields["dmarc_record"] = dmarc_record.strip()

        if catch_all is not None:
            enabled = bool(catch_all.get("enabled"))
            destination = (catch_all.get("destination") or "").strip().lower()
            if enabled:
                if not is_valid_email(destination):
                    raise ValidationError("Valid catch-all destination is required")
                self.mail.set_catch_all(record["domain"], destination)
            else:
                self.mail.clear_catch_all(record["domain"])
                destination = None
            fields["catch_all_enabled"] = enabled
            fields["catch_all_destination"] = destination

        if fields:
            self.database.update_email_domain(domain_id, **fields)
        return self.database.get_email_domain(domain_id)

    def delete_domain(self, domain_id):
        record = self.get_domain(domain_id)
        domain = record["domain"]

        if record["current_accounts"] > 0 or self.database.count_email_accounts(domain) > 0:
            raise ConflictError("Cannot delete domain with existing email accounts")

        outcomes = self.mail.remove_domain(domain)
        self.database.delete_email_domain(domain_id)

        warnings = failed_steps(outcomes)
        self.logger.log_provisioning(domain, "delete_email_domain", "success", "Email domain deleted", warnings)
        return {"domain": domain, "deleted": True, "warnings": warnings}

    # Accounts

    def list_accounts(self, domain=None, refresh_usage=True):
        accounts = self.database.list_email_accounts(normalize_domain(domain) if domain else None)
        if refresh_usage:
            for account in accounts:
                account["used_quota"] = self.mail.get_mailbox_usage(account["email"])["used"]
        return accounts

    def get_account(self, account_id):
        account = self.database.get_email_account(account_id)
        if not account:
            raise NotFoundError("Email account not found")
        return account

    def create_account(self, email, password, quota=None, aliases=None, forwards=None, owner=None):
        """Create a mailbox.

        Every check (address syntax, password length, registered and active
        domain, unique address, spare capacity) runs before any mail file
        is touched. The domain's account slot is reserved up front and
        released again if provisioning fails.
        """
        email = (email or "").strip().lower()
        if not is_valid_email(email):
            raise ValidationError("Valid email address is required")
        self._validate_password(password)
        quota = self._validate_quota(
            self.config.get("email_default_quota", 1000) if quota is None else quota
        )
        aliases = self._normalize_addresses(aliases, "alias")
        forwards = self._normalize_addresses(forwards, "forward")

        _, domain = split_address(email)
        email_domain = self.database.get_email_domain_by_name(domain)
        if not email_domain:
            raise ValidationError("Email domain not configured")
        if not email_domain["is_active"]:
            raise ValidationError("Email domain is not active")

        if self.database.get_email_account_by_address(email):
            raise ConflictError("Email account already exists")
        self._check_aliases_free(aliases)

        if email_domain["current_accounts"] >= email_domain["max_accounts"]:
            raise ConflictError("Maximum email accounts reached for this domain")
        if not self.database.increment_account_count(domain):
            raise ConflictError("Maximum email accounts reached for this domain")

        password_hash = self.hash_password(password)

        try:
            outcomes = self.mail.create_mailbox(email, password_hash, quota)
            account_id = self.database.create_email_account(
                email,
                password_hash,
                domain,
                quota=quota,
                aliases=aliases,
                forwards=forwards,
                owner=owner,
            )
        except sqlite3.IntegrityError:
            self.database.decrement_account_count(domain)
            raise ConflictError("Email account already exists")
        except Exception as e:
            self.database.decrement_account_count(domain)
            self.logger.log_provisioning(email, "create_email_account", "failed", str(e))
            raise

        warnings = failed_steps(outcomes)
        added = []
        for alias in aliases:
            try:
                if self.mail.add_alias(alias, email):
                    added.append(alias)
            except Exception as e:
                self.logger.warning(f"Failed to add alias {alias} for {email}: {e}")
                warnings.append(f"add alias {alias}")
        if added != aliases:
            self.database.update_email_account(account_id, aliases=added)

        self.logger.log_provisioning(email, "create_email_account", "success", "Email account created", warnings)
        return {"account": self.database.get_email_account(account_id), "warnings": warnings}

    def update_account(self, account_id, quota=None, is_active=None, aliases=None, forwards=None):
        account = self.get_account(account_id)
        email = account["email"]
        fields = {}

        if aliases is not None:
            aliases = self._normalize_addresses(aliases, "alias")
            self._check_aliases_free([a for a in aliases if a not in account["aliases"]])

        if quota is not None:
            quota = self._validate_quota(quota)
            try:
                self.mail.set_quota(email, quota)
            except Exception as e:
                self.logger.warning(f"Quota setting failed for {email}: {e}")
            fields["quota"] = quota

        if is_active is not None:
            fields["is_active"] = bool(is_active)

        if forwards is not None:
            fields["forwards"] = self._normalize_addresses(forwards, "forward")

        if aliases is not None:
            for old_alias in account["aliases"]:
                self.mail.remove_alias(old_alias)
            fields["aliases"] = [alias for alias in aliases if self.mail.add_alias(alias, email)]

        if fields:
            self.database.update_email_account(account_id, **fields)
        return self.database.get_email_account(account_id)

    def delete_account(self, account_id):
        account = self.get_account(account_id)
        email = account["email"]

        outcomes = self.mail.delete_mailbox(email)
        warnings = failed_steps(outcomes)

        for alias in account["aliases"]:
            try:
                self.mail.remove_alias(alias)
            except Exception as e:
                self.logger.warning(f"Failed to remove alias {alias}: {e}")
                warnings.append(f"remove alias {alias}")

        self.database.decrement_account_count(account["domain"])
        self.database.delete_email_account(account_id)

        self.logger.log_provisioning(email, "delete_email_account", "success", "Email account deleted", warnings)
        return {"email": email, "deleted": True, "warnings": warnings}

    def change_password(self, account_id, password):
        self._validate_password(password)
        account = self.get_account(account_id)

        password_hash = self.hash_password(password)
        self.mail.change_password(account["email"], password_hash)
        self.database.update_email_account(account_id, password_hash=password_hash)

        self.logger.log_provisioning(account["email"], "change_password", "success")
        return True

    def get_usage(self, account_id):
        account = self.get_account(account_id)
        usage = self.mail.get_mailbox_usage(account["email"])
        self.database.update_email_account(account_id, used_quota=usage["used"])

        quota = account["quota"]
        return {
            "email": account["email"],
            "quota": quota,
            "used": usage["used"],
            "percentage": round(usage["used"] / quota * 100) if quota else 0,
        }

    # Aliases

    def add_alias(self, alias, destination):
        alias = (alias or "").strip().lower()
        destination = (destination or "").strip().lower()
        if not is_valid_email(alias):
            raise ValidationError("Valid alias email is required")
        if not is_valid_email(destination):
            raise ValidationError("Valid destination email is required")

        added = self.mail.add_alias(alias, destination)
        return {"alias": alias, "destination": destination, "added": added}

    def remove_alias(self, alias):
        alias = (alias or "").strip().lower()
        if not is_valid_email(alias):
            raise ValidationError("Valid alias email is required")
        return {"alias": alias, "removed": self.mail.remove_alias(alias)}

    def get_status(self):
        status = self.mail.test_configuration()
        status["statistics"] = {
            "domains": self.database.count_email_domains(),
            "accounts": self.database.count_email_accounts(),
            "activeAccounts": self.database.count_email_accounts(active_only=True),
        }
        return status
