from __future__ import annotations

import re
from typing import Any

# local@domain.tld with no whitespace and a single "@"
EMAIL_ADDRESS_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email_address(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return EMAIL_ADDRESS_PATTERN.fullmatch(value) is not None


def join_addresses(addresses: Any) -> str:
    """Render an address list the way SMTP headers expect it (comma separated)."""
    if isinstance(addresses, str):
        return addresses
    return ", ".join(addresses)
