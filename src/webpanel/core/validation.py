# src/webpanel/core/validation.py
"""Syntax checks for domains, email addresses and IPs"""

import ipaddress
import re

_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
_TLD_RE = re.compile(r"^[a-z]{2,63}$|^xn--[a-z0-9-]{1,59}$")
_LOCAL_PART_RE = re.compile(r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*$")


def normalize_domain(domain):
    return (domain or "").strip().lower().rstrip(".")


def is_valid_domain(domain):
    """Fully qualified domain name with at least two labels"""
    if not domain or len(domain) > 253:
        return False

    labels = domain.split(".")
    if len(labels) < 2:
        return False
    if not all(_LABEL_RE.match(label) for label in labels):
        return False
    return bool(_TLD_RE.match(labels[-1]))


def is_valid_email(address):
    if not address or address.count("@") != 1 or len(address) > 254:
        return False

    local_part, domain = address.split("@")
    if not local_part or len(local_part) > 64:
        return False
    return bool(_LOCAL_PART_RE.match(local_part)) and is_valid_domain(domain)


def is_valid_ip(value):
    try:
        ipaddress.ip_address((value or "").strip())
        return True
    except ValueError:
        return False


def split_address(address):
    """Split ``user@domain`` into its parts"""
    local_part, _, domain = address.partition("@")
    return local_part, domain
