# src/webpanel/mail/mail_manager.py
"""
Mail stack provisioning
Edits the postfix/dovecot flat files, generates DKIM keys and drives doveadm/postmap/systemctl
"""

import os
import shutil
import threading

from ..core.exceptions import ExternalToolError
from ..core.steps import BEST_EFFORT, Step, run_steps
from ..core.validation import split_address

_file_locks = {}
_file_locks_guard = threading.Lock()


def _lock_for(path):
    """One lock per flat file; every read-modify-write holds it"""
    with _file_locks_guard:
        lock = _file_locks.get(path)
        if lock is None:
            lock = _file_locks[path] = threading.Lock()
        return lock


def _read_lines(path):
    try:
        with open(path, "r") as f:
            return f.read().splitlines(keepends=True)
    except FileNotFoundError:
        return []


def _write_lines(path, lines):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        f.write("".join(lines))


def _line_key(line, separator=None):
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    if separator:
        return stripped.split(separator, 1)[0]
    return stripped.split()[0]


class MailManager:
    """Postfix virtual domains/mailboxes/aliases, dovecot users and DKIM keys"""

    def __init__(self, config, logger, runner):
        self.config = config
        self.logger = logger
        self.runner = runner
        self.virtual_domains_file = config.get("postfix_virtual_domains")
        self.virtual_maps_file = config.get("postfix_virtual_mailbox_maps")
        self.virtual_alias_file = config.get("postfix_virtual_alias_maps")
        self.dovecot_users_file = config.get("dovecot_users_file")
        self.dkim_keys_dir = config.get("dkim_keys_dir")
        self.dkim_selector = config.get("dkim_selector", "default")
        self.mail_home = config.get("mail_home")
        self.vmail_user = config.get("vmail_user", "vmail")
        self.services = config.get("mail_services", ["postfix", "dovecot", "opendkim"])

    # Flat file primitives

    def _append_line(self, path, key, line, separator=None):
        """Append a line unless an entry with the same key exists; True when written"""
        with _lock_for(path):
            lines = _read_lines(path)
            if any(_line_key(existing, separator) == key for existing in lines):
                return False
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += "\n"
            lines.append(line + "\n")
            _write_lines(path, lines)
            return True

    def _remove_lines(self, path, key, separator=None):
        """Rewrite the file without entries for key; True when something was removed"""
        with _lock_for(path):
            lines = _read_lines(path)
            kept = [line for line in lines if _line_key(line, separator) != key]
            if len(kept) == len(lines):
                return False
            _write_lines(path, kept)
            return True

    def _replace_line(self, path, key, line, separator=None):
        with _lock_for(path):
            lines = _read_lines(path)
            replaced = False
            for index, existing in enumerate(lines):
                if _line_key(existing, separator) == key:
                    lines[index] = line + "\n"
                    replaced = True
            if not replaced:
                lines.append(line + "\n")
            _write_lines(path, lines)
            return replaced

    def _file_has_key(self, path, key, separator=None):
        with _lock_for(path):
            return any(_line_key(line, separator) == key for line in _read_lines(path))

    def postmap(self, path):
        self.runner.run(["postmap", path])

    def reload_services(self):
        """Reload postfix, dovecot and opendkim, attempting every service"""
        errors = []
        for service in self.services:
            try:
                self.runner.run(["systemctl", "reload", service])
            except ExternalToolError as e:
                errors.append(f"{service}: {e}")

        if errors:
            raise ExternalToolError(f"Service reload failed: {'; '.join(errors)}")
        return True

    # Domains

    def has_domain(self, domain):
        return self._file_has_key(self.virtual_domains_file, domain)

    def register_domain(self, domain):
        """Add a virtual domain and generate its DKIM keys.

        Returns the key material; the public key is what the operator
        publishes as ``<selector>._domainkey`` TXT record.
        """
        steps = [
            Step(
                "add virtual domain",
                lambda: self._append_line(self.virtual_domains_file, domain, domain),
            ),
            Step("generate DKIM keys", lambda: self.create_dkim_keys(domain)),
            Step("reload mail services", self.reload_services, BEST_EFFORT),
        ]
        outcomes = run_steps(domain, steps, self.logger)
        return outcomes[1]["result"]

    def remove_domain(self, domain):
        steps = [
            Step(
                "remove virtual domain",
                lambda: self._remove_lines(self.virtual_domains_file, domain),
                BEST_EFFORT,
            ),
            Step("remove DKIM keys", lambda: self.remove_dkim_keys(domain), BEST_EFFORT),
            Step("clear catch-all", lambda: self._remove_alias_entry(f"@{domain}"), BEST_EFFORT),
            Step("reload mail services", self.reload_services, BEST_EFFORT),
        ]
        return run_steps(domain, steps, self.logger)

    def dkim_dir(self, domain):
        return os.path.join(self.dkim_keys_dir, domain)

    def create_dkim_keys(self, domain):
        """Run opendkim-genkey in the domain's key directory and read the pair back"""
        key_dir = self.dkim_dir(domain)
        os.makedirs(key_dir, mode=0o750, exist_ok=True)

        self.runner.run(
            ["opendkim-genkey", "-t", "-s", self.dkim_selector, "-d", domain],
            cwd=key_dir,
        )

        with open(os.path.join(key_dir, f"{self.dkim_selector}.private"), "r") as f:
            private_key = f.read()
        with open(os.path.join(key_dir, f"{self.dkim_selector}.txt"), "r") as f:
            public_key = f.read()

        return {"privateKey": private_key, "publicKey": public_key}

    def remove_dkim_keys(self, domain):
        key_dir = self.dkim_dir(domain)
        if os.path.isdir(key_dir):
            shutil.rmtree(key_dir)
            return True
        return False

    # Mailboxes

    def mail_dir(self, address):
        user, domain = split_address(address)
        return os.path.join(self.mail_home, domain, user)

    def create_mailbox(self, address, password_hash, quota_mb):
        """Provision a mailbox step by step; earlier steps stay in place if a later one fails"""
        user, domain = split_address(address)
        domain_dir = os.path.join(self.mail_home, domain)
        user_entry = self._dovecot_entry(address, password_hash)

        steps = [
            Step(
                "add virtual mailbox",
                lambda: self._append_line(
                    self.virtual_maps_file, address, f"{address} {domain}/{user}/"
                ),
            ),
            Step("rebuild mailbox map", lambda: self.postmap(self.virtual_maps_file)),
            Step(
                "add dovecot user",
                lambda: self._append_line(self.dovecot_users_file, address, user_entry, ":"),
            ),
            Step(
                "create mail directory",
                lambda: os.makedirs(self.mail_dir(address), mode=0o700, exist_ok=True),
            ),
            Step(
                "fix mail directory ownership",
                lambda: self.runner.run(
                    ["chown", "-R", f"{self.vmail_user}:{self.vmail_user}", domain_dir]
                ),
                BEST_EFFORT,
            ),
            Step(
                "fix mail directory permissions",
                lambda: self.runner.run(["chmod", "-R", "700", domain_dir]),
                BEST_EFFORT,
            ),
            Step("set quota", lambda: self.set_quota(address, quota_mb), BEST_EFFORT),
            Step("reload mail services", self.reload_services, BEST_EFFORT),
        ]
        return run_steps(address, steps, self.logger)

    def delete_mailbox(self, address):
        """Mirror of create_mailbox; every step is best-effort"""
        steps = [
            Step(
                "remove virtual mailbox",
                lambda: self._remove_lines(self.virtual_maps_file, address),
                BEST_EFFORT,
            ),
            Step("rebuild mailbox map", lambda: self.postmap(self.virtual_maps_file), BEST_EFFORT),
            Step(
                "remove dovecot user",
                lambda: self._remove_lines(self.dovecot_users_file, address, ":"),
                BEST_EFFORT,
            ),
            Step("remove mail directory", lambda: self._remove_mail_dir(address), BEST_EFFORT),
            Step("reload mail services", self.reload_services, BEST_EFFORT),
        ]
        return run_steps(address, steps, self.logger)

    def _remove_mail_dir(self, address):
        mail_dir = self.mail_dir(address)
        if os.path.isdir(mail_dir):
            shutil.rmtree(mail_dir)
            return True
        return False

    def _dovecot_entry(self, address, password_hash):
        # user:password:uid:gid:gecos:home:shell:extra
        return ":".join(
            [address, f"{{BLF-CRYPT}}{password_hash}", "", "", "", self.mail_dir(address), "", ""]
        )

    def change_password(self, address, password_hash):
        """Replace only the credential line of an existing mailbox"""
        steps = [
            Step(
                "update dovecot user",
                lambda: self._replace_line(
                    self.dovecot_users_file,
                    address,
                    self._dovecot_entry(address, password_hash),
                    ":",
                ),
            ),
            Step("reload mail services", self.reload_services, BEST_EFFORT),
        ]
        return run_steps(address, steps, self.logger)

    def set_quota(self, address, quota_mb):
        self.runner.run(["doveadm", "quota", "set", "-u", address, "STORAGE", f"{quota_mb}M"])
        return True

    def get_mailbox_usage(self, address):
        """Storage usage in MB as reported by doveadm; zeros when unavailable"""
        try:
            result = self.runner.run(["doveadm", "quota", "get", "-u", address])
        except ExternalToolError as e:
            self.logger.warning(f"Quota lookup failed for {address}: {e}")
            return {"used": 0, "limit": 0}
        return parse_quota_output(result.stdout)

    # Aliases

    def has_alias(self, alias):
        return self._file_has_key(self.virtual_alias_file, alias)

    def add_alias(self, alias, destination):
        """Append ``alias destination`` to the alias map, rebuild it and reload.

        An alias that already exists is left untouched.
        """
        added = self._append_line(self.virtual_alias_file, alias, f"{alias} {destination}")
        if added:
            self.postmap(self.virtual_alias_file)
            self._reload_quietly()
        return added

    def remove_alias(self, alias):
        removed = self._remove_alias_entry(alias)
        if removed:
            self._reload_quietly()
        return removed

    def _remove_alias_entry(self, alias):
        removed = self._remove_lines(self.virtual_alias_file, alias)
        if removed:
            self.postmap(self.virtual_alias_file)
        return removed

    def set_catch_all(self, domain, destination):
        key = f"@{domain}"
        self._remove_alias_entry(key)
        return self.add_alias(key, destination)

    def clear_catch_all(self, domain):
        return self.remove_alias(f"@{domain}")

    def _reload_quietly(self):
        try:
            self.reload_services()
        except ExternalToolError as e:
            self.logger.warning(str(e))

    # Status

    def test_configuration(self):
        try:
            self.runner.run(["postfix", "check"])
            self.runner.run(["doveconf", "-n"])
            return {"success": True, "message": "Email configuration is valid"}
        except ExternalToolError as e:
            return {"success": False, "error": str(e)}


def parse_quota_output(output):
    """Read the STORAGE row of ``doveadm quota get`` output.

    Values are reported in KiB; ``-`` means unlimited. Returns MB.
    """
    for line in (output or "").splitlines():
        parts = line.split()
        if "STORAGE" not in parts:
            continue
        index = parts.index("STORAGE")
        used = _kib(parts[index + 1]) if len(parts) > index + 1 else 0
        limit = _kib(parts[index + 2]) if len(parts) > index + 2 else 0
        return {"used": round(used / 1024), "limit": round(limit / 1024)}

    return {"used": 0, "limit": 0}


def _kib(value):
    try:
        return int(value)
    except ValueError:
        return 0
