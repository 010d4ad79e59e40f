# src/webpanel/core/database.py
"""
Metadata store for sites, DNS record references, email domains and accounts
SQLite with a connection per operation
"""

import json
import os
import sqlite3

SCHEMA = """
CREATE TABLE IF NOT EXISTS sites (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT UNIQUE NOT NULL,
    path TEXT NOT NULL,
    nginx_config TEXT,
    ssl_enabled BOOLEAN DEFAULT 0,
    cloudflare_enabled BOOLEAN DEFAULT 0,
    status TEXT DEFAULT 'active'
        CHECK (status IN ('active', 'inactive', 'suspended')),
    ssl_expiry TIMESTAMP,
    owner TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS dns_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id INTEGER NOT NULL,
    record_type TEXT NOT NULL
        CHECK (record_type IN ('A', 'AAAA', 'CNAME', 'MX', 'TXT', 'SRV', 'NS', 'PTR')),
    name TEXT NOT NULL,
    content TEXT NOT NULL,
    ttl INTEGER DEFAULT 300,
    priority INTEGER DEFAULT 0,
    cloudflare_id TEXT,
    is_active BOOLEAN DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (site_id) REFERENCES sites (id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS email_domains (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT UNIQUE NOT NULL,
    is_active BOOLEAN DEFAULT 1,
    max_accounts INTEGER DEFAULT 100,
    current_accounts INTEGER DEFAULT 0,
    dkim_enabled BOOLEAN DEFAULT 0,
    dkim_private_key TEXT,
    dkim_public_key TEXT,
    spf_record TEXT DEFAULT 'v=spf1 mx ~all',
    dmarc_record TEXT,
    catch_all_enabled BOOLEAN DEFAULT 0,
    catch_all_destination TEXT,
    owner TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS email_accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    domain TEXT NOT NULL,
    quota INTEGER DEFAULT 1000,
    used_quota INTEGER DEFAULT 0,
    is_active BOOLEAN DEFAULT 1,
    aliases TEXT DEFAULT '[]',
    forwards TEXT DEFAULT '[]',
    owner TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_sites_domain ON sites(domain);
CREATE INDEX IF NOT EXISTS idx_dns_records_site ON dns_records(site_id);
CREATE INDEX IF NOT EXISTS idx_dns_records_type ON dns_records(record_type);
CREATE INDEX IF NOT EXISTS idx_email_domains_domain ON email_domains(domain);
CREATE INDEX IF NOT EXISTS idx_email_accounts_email ON email_accounts(email);
CREATE INDEX IF NOT EXISTS idx_email_accounts_domain ON email_accounts(domain);
"""

BOOLEAN_COLUMNS = {
    "ssl_enabled",
    "cloudflare_enabled",
    "is_active",
    "dkim_enabled",
    "catch_all_enabled",
}
JSON_COLUMNS = {"aliases", "forwards"}

# Columns that callers may change through the update helpers
UPDATABLE_COLUMNS = {
    "sites": {"path", "nginx_config", "ssl_enabled", "cloudflare_enabled", "status", "ssl_expiry"},
    "dns_records": {"name", "content", "ttl", "priority", "is_active"},
    "email_domains": {
        "is_active",
        "max_accounts",
        "dkim_enabled",
        "dkim_private_key",
        "dkim_public_key",
        "spf_record",
        "dmarc_record",
        "catch_all_enabled",
        "catch_all_destination",
    },
    "email_accounts": {"password_hash", "quota", "used_quota", "is_active", "aliases", "forwards"},
}


class PanelDatabase:
    """SQLite persistence for the panel's metadata records"""

    def __init__(self, config, logger):
        self.config = config
        self.logger = logger
        self.db_path = config.get("database_path")

    def get_connection(self):
        """Get database connection"""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def setup(self):
        """Create the database file and tables"""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, mode=0o755, exist_ok=True)

        conn = self.get_connection()
        try:
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

        self.logger.info("Database setup completed")
        return True

    def is_connected(self):
        try:
            conn = self.get_connection()
            conn.execute("SELECT 1")
            conn.close()
            return True
        except sqlite3.Error as e:
            self.logger.error(f"Database connection failed: {e}")
            return False

    # Query helpers

    def _execute(self, sql, params=()):
        conn = self.get_connection()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid, cursor.rowcount
        finally:
            conn.close()

    def _fetch_one(self, sql, params=()):
        conn = self.get_connection()
        try:
            row = conn.execute(sql, params).fetchone()
            return _row_to_dict(row) if row else None
        finally:
            conn.close()

    def _fetch_all(self, sql, params=()):
        conn = self.get_connection()
        try:
            return [_row_to_dict(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def _insert(self, table, values):
        values = _encode_values(values)
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        row_id, _ = self._execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(values.values()),
        )
        return row_id

    def _update(self, table, row_id, fields):
        unknown = set(fields) - UPDATABLE_COLUMNS[table]
        if unknown:
            raise ValueError(f"Cannot update columns on {table}: {sorted(unknown)}")
        if not fields:
            return False

        fields = _encode_values(fields)
        assignments = ", ".join(f"{column} = ?" for column in fields)
        _, rowcount = self._execute(
            f"UPDATE {table} SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            tuple(fields.values()) + (row_id,),
        )
        return rowcount > 0

    # Sites

    def create_site(self, domain, path, nginx_config, ssl_enabled=False,
                    cloudflare_enabled=False, status="active", owner=None):
        return self._insert(
            "sites",
            {
                "domain": domain,
                "path": path,
                "nginx_config": nginx_config,
                "ssl_enabled": ssl_enabled,
                "cloudflare_enabled": cloudflare_enabled,
                "status": status,
                "owner": owner,
            },
        )

    def get_site(self, site_id):
        return self._fetch_one("SELECT * FROM sites WHERE id = ?", (site_id,))

    def get_site_by_domain(self, domain):
        return self._fetch_one("SELECT * FROM sites WHERE domain = ?", (domain,))

    def list_sites(self):
        return self._fetch_all("SELECT * FROM sites ORDER BY created_at DESC, id DESC")

    def update_site(self, site_id, **fields):
        return self._update("sites", site_id, fields)

    def delete_site(self, site_id):
        _, rowcount = self._execute("DELETE FROM sites WHERE id = ?", (site_id,))
        return rowcount > 0

    def count_sites(self, ssl_only=False):
        sql = "SELECT COUNT(*) AS total FROM sites"
        if ssl_only:
            sql += " WHERE ssl_enabled = 1"
        return self._fetch_one(sql)["total"]

    # DNS record references

    def add_dns_record(self, site_id, record_type, name, content, ttl=300,
                       priority=0, cloudflare_id=None):
        return self._insert(
            "dns_records",
            {
                "site_id": site_id,
                "record_type": record_type,
                "name": name,
                "content": content,
                "ttl": ttl,
                "priority": priority,
                "cloudflare_id": cloudflare_id,
            },
        )

    def list_dns_records(self, site_id):
        return self._fetch_all(
            "SELECT * FROM dns_records WHERE site_id = ? ORDER BY id", (site_id,)
        )

    def delete_dns_records(self, site_id):
        _, rowcount = self._execute("DELETE FROM dns_records WHERE site_id = ?", (site_id,))
        return rowcount

    # Email domains

    def create_email_domain(self, domain, max_accounts=100, dkim_enabled=False,
                            dkim_private_key=None, dkim_public_key=None,
                            spf_record="v=spf1 mx ~all", dmarc_record=None, owner=None):
        return self._insert(
            "email_domains",
            {
                "domain": domain,
                "max_accounts": max_accounts,
                "dkim_enabled": dkim_enabled,
                "dkim_private_key": dkim_private_key,
                "dkim_public_key": dkim_public_key,
                "spf_record": spf_record,
                "dmarc_record": dmarc_record,
                "owner": owner,
            },
        )

    def get_email_domain(self, domain_id):
        return self._fetch_one("SELECT * FROM email_domains WHERE id = ?", (domain_id,))

    def get_email_domain_by_name(self, domain):
        return self._fetch_one("SELECT * FROM email_domains WHERE domain = ?", (domain,))

    def list_email_domains(self):
        return self._fetch_all("SELECT * FROM email_domains ORDER BY created_at DESC, id DESC")

    def update_email_domain(self, domain_id, **fields):
        return self._update("email_domains", domain_id, fields)

    def delete_email_domain(self, domain_id):
        _, rowcount = self._execute("DELETE FROM email_domains WHERE id = ?", (domain_id,))
        return rowcount > 0

    def increment_account_count(self, domain):
        """Take one account slot; False when the domain is already full"""
        _, rowcount = self._execute(
            """
            UPDATE email_domains
            SET current_accounts = current_accounts + 1, updated_at = CURRENT_TIMESTAMP
            WHERE domain = ? AND current_accounts < max_accounts
            """,
            (domain,),
        )
        return rowcount > 0

    def decrement_account_count(self, domain):
        _, rowcount = self._execute(
            """
            UPDATE email_domains
            SET current_accounts = MAX(0, current_accounts - 1), updated_at = CURRENT_TIMESTAMP
            WHERE domain = ?
            """,
            (domain,),
        )
        return rowcount > 0

    # Email accounts

    def create_email_account(self, email, password_hash, domain, quota=1000,
                             aliases=None, forwards=None, owner=None):
        return self._insert(
            "email_accounts",
            {
                "email": email,
                "password_hash": password_hash,
                "domain": domain,
                "quota": quota,
                "aliases": aliases or [],
                "forwards": forwards or [],
                "owner": owner,
            },
        )

    def get_email_account(self, account_id):
        return self._fetch_one("SELECT * FROM email_accounts WHERE id = ?", (account_id,))

    def get_email_account_by_address(self, email):
        return self._fetch_one("SELECT * FROM email_accounts WHERE email = ?", (email,))

    def list_email_accounts(self, domain=None):
        if domain:
            return self._fetch_all(
                "SELECT * FROM email_accounts WHERE domain = ? ORDER BY created_at DESC, id DESC",
                (domain,),
            )
        return self._fetch_all("SELECT * FROM email_accounts ORDER BY created_at DESC, id DESC")

    def update_email_account(self, account_id, **fields):
        return self._update("email_accounts", account_id, fields)

    def delete_email_account(self, account_id):
        _, rowcount = self._execute("DELETE FROM email_accounts WHERE id = ?", (account_id,))
        return rowcount > 0

    def count_email_accounts(self, domain=None, active_only=False):
        sql = "SELECT COUNT(*) AS total FROM email_accounts WHERE 1 = 1"
        params = []
        if domain:
            sql += " AND domain = ?"
            params.append(domain)
        if active_only:
            sql += " AND is_active = 1"
        return self._fetch_one(sql, tuple(params))["total"]

    def count_email_domains(self):
        return self._fetch_one("SELECT COUNT(*) AS total FROM email_domains")["total"]


def _encode_values(values):
    encoded = {}
    for column, value in values.items():
        if column in JSON_COLUMNS:
            value = json.dumps(list(value or []))
        elif column in BOOLEAN_COLUMNS and value is not None:
            value = 1 if value else 0
        encoded[column] = value
    return encoded


def _row_to_dict(row):
    data = dict(row)
    for column in BOOLEAN_COLUMNS & data.keys():
        data[column] = bool(data[column])
    for column in JSON_COLUMNS & data.keys():
        data[column] = json.loads(data[column] or "[]")
    return data
