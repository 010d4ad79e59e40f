"""Unit tests for domain, address and IP checks."""
import pytest

from webpanel.core.validation import (
    is_valid_domain,
    is_valid_email,
    is_valid_ip,
    normalize_domain,
    split_address,
)


@pytest.mark.parametrize(
    "domain", ["example.com", "sub.example.co.uk", "my-site.io", "xn--bcher-kva.example"]
)
def test_valid_domains(domain):
    assert is_valid_domain(domain)


@pytest.mark.parametrize(
    "domain", ["", "localhost", "-bad.com", "bad-.com", "exa mple.com", "example.c0m", "a..com"]
)
def test_invalid_domains(domain):
    assert not is_valid_domain(domain)


def test_normalize_domain_lowercases_and_strips():
    assert normalize_domain("  Example.COM. ") == "example.com"
    assert normalize_domain(None) == ""


def test_email_addresses():
    assert is_valid_email("user@corp.test")
    assert is_valid_email("first.last+tag@corp.test")
    assert not is_valid_email("user@@corp.test")
    assert not is_valid_email("user@localhost")
    assert not is_valid_email("@corp.test")


def test_ip_addresses():
    assert is_valid_ip("203.0.113.10")
    assert is_valid_ip("2001:db8::1")
    assert not is_valid_ip("203.0.113")
    assert not is_valid_ip("")


def test_split_address():
    assert split_address("user@corp.test") == ("user", "corp.test")
