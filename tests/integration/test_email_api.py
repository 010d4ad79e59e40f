"""Integration tests for email endpoints."""
import os

import pytest


def _read(path):
    with open(path) as f:
        return f.read()


@pytest.fixture
def corp_domain(client, auth_headers):
    """Register corp.test as a mail domain."""
    response = client.post("/api/email/domains", json={"domain": "corp.test"}, headers=auth_headers)
    assert response.status_code == 201
    return response.get_json()["domain"]


def _create_account(client, auth_headers, **payload):
    payload.setdefault("email", "user@corp.test")
    payload.setdefault("password", "s3cretpass")
    return client.post("/api/email/accounts", json=payload, headers=auth_headers)


class TestEmailDomains:
    """Tests for mail domain management."""

    def test_create_domain(self, client, auth_headers, config, corp_domain):
        assert corp_domain["domain"] == "corp.test"
        assert corp_domain["currentAccounts"] == 0
        assert corp_domain["maxAccounts"] == 100
        assert corp_domain["dkimEnabled"] is True
        assert "KEY-corp.test" in corp_domain["dkimPublicKey"]
        assert corp_domain["spfRecord"] == "v=spf1 mx ~all"
        assert corp_domain["dmarcRecord"] == "v=DMARC1; p=quarantine; rua=mailto:dmarc@corp.test"
        assert "dkimPrivateKey" not in corp_domain
        assert _read(config.get("postfix_virtual_domains")) == "corp.test\n"

    def test_duplicate_domain_is_a_conflict_without_side_effects(self, client, auth_headers, runner, corp_domain):
        commands = len(runner.commands)

        response = client.post("/api/email/domains", json={"domain": "corp.test"}, headers=auth_headers)

        assert response.status_code == 409
        assert response.get_json()["error"] == "Email domain already exists"
        assert len(runner.commands) == commands

    def test_invalid_domain(self, client, auth_headers, config):
        response = client.post("/api/email/domains", json={"domain": "not a domain"}, headers=auth_headers)

        assert response.status_code == 400
        assert not os.path.exists(config.get("postfix_virtual_domains"))

    def test_dkim_failure_fails_the_request(self, client, auth_headers, runner):
        runner.fail("opendkim-genkey", output="opendkim-genkey: command not found")

        response = client.post("/api/email/domains", json={"domain": "corp.test"}, headers=auth_headers)

        assert response.status_code == 500
        assert client.get("/api/email/domains", headers=auth_headers).get_json()["domains"] == []

    def test_cannot_shrink_below_current_accounts(self, client, auth_headers, corp_domain):
        _create_account(client, auth_headers)
        _create_account(client, auth_headers, email="second@corp.test")

        response = client.put(
            f"/api/email/domains/{corp_domain['id']}", json={"maxAccounts": 1}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_catch_all(self, client, auth_headers, config, corp_domain):
        response = client.put(
            f"/api/email/domains/{corp_domain['id']}",
            json={"catchAll": {"enabled": True, "destination": "user@corp.test"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.get_json()["domain"]["catchAll"] == {"enabled": True, "destination": "user@corp.test"}
        assert "@corp.test user@corp.test\n" in _read(config.get("postfix_virtual_alias_maps"))

    @pytest.mark.parametrize(
        "payload",
        [{"spfRecord": 5}, {"dmarcRecord": ["v=DMARC1"]}, {"catchAll": {"enabled": True, "destination": 7}}],
    )
    def test_non_string_records_are_rejected(self, client, auth_headers, corp_domain, payload):
        response = client.put(f"/api/email/domains/{corp_domain['id']}", json=payload, headers=auth_headers)

        assert response.status_code == 400

    def test_delete_domain_with_accounts_is_refused(self, client, auth_headers, corp_domain):
        account = _create_account(client, auth_headers).get_json()["account"]

        response = client.delete(f"/api/email/domains/{corp_domain['id']}", headers=auth_headers)
        assert response.status_code == 409
        assert response.get_json()["error"] == "Cannot delete domain with existing email accounts"

        client.delete(f"/api/email/accounts/{account['id']}", headers=auth_headers)
        response = client.delete(f"/api/email/domains/{corp_domain['id']}", headers=auth_headers)
        assert response.status_code == 200


class TestEmailAccounts:
    """Tests for mailbox management."""

    def test_create_account(self, client, auth_headers, config, corp_domain):
        response = _create_account(client, auth_headers, quota=500)

        assert response.status_code == 201
        account = response.get_json()["account"]
        assert account["email"] == "user@corp.test"
        assert account["quota"] == 500
        assert account["isActive"] is True
        assert "passwordHash" not in account

        users = _read(config.get("dovecot_users_file"))
        assert users.startswith("user@corp.test:{BLF-CRYPT}$2b$04$")
        assert "user@corp.test corp.test/user/" in _read(config.get("postfix_virtual_mailbox_maps"))

        domains = client.get("/api/email/domains", headers=auth_headers).get_json()["domains"]
        assert domains[0]["currentAccounts"] == 1

    def test_duplicate_account(self, client, auth_headers, corp_domain):
        _create_account(client, auth_headers, quota=500)

        response = _create_account(client, auth_headers)

        assert response.status_code == 409
        assert response.get_json()["error"] == "Email account already exists"
        domains = client.get("/api/email/domains", headers=auth_headers).get_json()["domains"]
        assert domains[0]["currentAccounts"] == 1

    def test_unregistered_domain_writes_nothing(self, client, auth_headers, config, runner):
        response = _create_account(client, auth_headers, email="user@nowhere.test")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Email domain not configured"
        assert not os.path.exists(config.get("postfix_virtual_mailbox_maps"))
        assert not os.path.exists(config.get("dovecot_users_file"))
        assert runner.commands == []

    def test_short_password(self, client, auth_headers, corp_domain):
        response = _create_account(client, auth_headers, password="abc")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Password must be at least 6 characters"

    def test_capacity_is_enforced(self, client, auth_headers, config):
        client.post("/api/email/domains", json={"domain": "corp.test", "maxAccounts": 1}, headers=auth_headers)
        assert _create_account(client, auth_headers).status_code == 201

        response = _create_account(client, auth_headers, email="second@corp.test")

        assert response.status_code == 409
        assert response.get_json()["error"] == "Maximum email accounts reached for this domain"
        assert "second@corp.test" not in _read(config.get("postfix_virtual_mailbox_maps"))

    def test_failed_provisioning_releases_the_slot(self, client, auth_headers, runner, corp_domain):
        runner.fail("postmap")

        response = _create_account(client, auth_headers)

        assert response.status_code == 500
        domains = client.get("/api/email/domains", headers=auth_headers).get_json()["domains"]
        assert domains[0]["currentAccounts"] == 0

    def test_aliases_are_registered(self, client, auth_headers, config, corp_domain):
        response = _create_account(client, auth_headers, aliases=["info@corp.test"])

        assert response.status_code == 201
        assert "info@corp.test user@corp.test\n" in _read(config.get("postfix_virtual_alias_maps"))

    def test_taken_alias_is_a_conflict_on_create(self, client, auth_headers, config, corp_domain):
        _create_account(client, auth_headers, email="alice@corp.test", aliases=["info@corp.test"])
        alias_map = config.get("postfix_virtual_alias_maps")

        response = _create_account(client, auth_headers, email="bob@corp.test", aliases=["info@corp.test"])

        assert response.status_code == 409
        assert response.get_json()["error"] == "Alias already exists: info@corp.test"
        assert "bob@corp.test" not in _read(config.get("dovecot_users_file"))
        assert _read(alias_map) == "info@corp.test alice@corp.test\n"

    def test_taken_alias_is_a_conflict_on_update(self, client, auth_headers, config, corp_domain):
        alice = _create_account(
            client, auth_headers, email="alice@corp.test", aliases=["info@corp.test"]
        ).get_json()["account"]
        bob = _create_account(client, auth_headers, email="bob@corp.test").get_json()["account"]

        response = client.put(
            f"/api/email/accounts/{bob['id']}", json={"aliases": ["info@corp.test"]}, headers=auth_headers
        )
        assert response.status_code == 409

        client.delete(f"/api/email/accounts/{bob['id']}", headers=auth_headers)
        assert _read(config.get("postfix_virtual_alias_maps")) == "info@corp.test alice@corp.test\n"

        response = client.put(
            f"/api/email/accounts/{alice['id']}",
            json={"aliases": ["info@corp.test", "sales@corp.test"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.get_json()["account"]["aliases"] == ["info@corp.test", "sales@corp.test"]

    def test_change_password_rewrites_credentials(self, client, auth_headers, config, corp_domain):
        account = _create_account(client, auth_headers).get_json()["account"]
        before = _read(config.get("dovecot_users_file"))
        maps_before = _read(config.get("postfix_virtual_mailbox_maps"))

        response = client.post(
            f"/api/email/accounts/{account['id']}/password",
            json={"password": "another-password"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        after = _read(config.get("dovecot_users_file"))
        assert after != before
        assert after.count("user@corp.test:") == 1
        assert _read(config.get("postfix_virtual_mailbox_maps")) == maps_before

    def test_usage(self, client, auth_headers, runner, corp_domain):
        account = _create_account(client, auth_headers, quota=500).get_json()["account"]
        runner.respond("doveadm", "quota", "get", stdout="User quota STORAGE 256000 512000 50\n")

        response = client.get(f"/api/email/accounts/{account['id']}/usage", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["usage"] == {
            "email": "user@corp.test",
            "quota": 500,
            "used": 250,
            "percentage": 50,
        }

    def test_update_account(self, client, auth_headers, runner, corp_domain):
        account = _create_account(client, auth_headers).get_json()["account"]

        response = client.put(
            f"/api/email/accounts/{account['id']}",
            json={"quota": 2000, "isActive": False},
            headers=auth_headers,
        )

        assert response.status_code == 200
        updated = response.get_json()["account"]
        assert updated["quota"] == 2000
        assert updated["isActive"] is False
        assert runner.ran("doveadm", "quota", "set", "-u", "user@corp.test", "STORAGE", "2000M")

    def test_delete_account(self, client, auth_headers, config, corp_domain):
        account = _create_account(client, auth_headers, aliases=["info@corp.test"]).get_json()["account"]

        response = client.delete(f"/api/email/accounts/{account['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert "user@corp.test" not in _read(config.get("dovecot_users_file"))
        assert "info@corp.test" not in _read(config.get("postfix_virtual_alias_maps"))
        domains = client.get("/api/email/domains", headers=auth_headers).get_json()["domains"]
        assert domains[0]["currentAccounts"] == 0

    def test_list_accounts_by_domain(self, client, auth_headers, corp_domain):
        _create_account(client, auth_headers)

        response = client.get("/api/email/accounts?domain=corp.test", headers=auth_headers)

        assert [a["email"] for a in response.get_json()["accounts"]] == ["user@corp.test"]


class TestAliasesAndStatus:
    """Tests for standalone aliases and the status endpoint."""

    def test_add_and_remove_alias(self, client, auth_headers, config):
        response = client.post(
            "/api/email/aliases",
            json={"alias": "sales@corp.test", "destination": "boss@corp.test"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.get_json()["added"] is True

        response = client.delete("/api/email/aliases/sales@corp.test", headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()["removed"] is True
        assert _read(config.get("postfix_virtual_alias_maps")) == ""

    def test_invalid_alias(self, client, auth_headers):
        response = client.post(
            "/api/email/aliases",
            json={"alias": "not-an-address", "destination": "boss@corp.test"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_status(self, client, auth_headers, corp_domain):
        response = client.get("/api/email/status", headers=auth_headers)

        status = response.get_json()["status"]
        assert status["success"] is True
        assert status["statistics"] == {"domains": 1, "accounts": 0, "activeAccounts": 0}
