"""Wallet / mint address helpers"""

import re

# base58 alphabet (no 0, O, I, l); a 32-byte key encodes to 32~44 chars
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_address(value: object) -> bool:
    """True if value looks like a base58 encoded public key."""
    return isinstance(value, str) and bool(_BASE58_RE.match(value))


def short_address(value: str | None, length: int = 8) -> str:
    """First `length` chars for log lines."""
    if not value:
        return "-"
    if len(value) <= length:
        return value
    return f"{value[:length]}..."
