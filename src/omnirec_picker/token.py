"""Approval tokens that let later requests skip the consent dialog."""

import re
import secrets

TOKEN_BYTES = 32

_TOKEN_RE = re.compile(r"[0-9a-f]{%d}" % (TOKEN_BYTES * 2))


def generate_approval_token() -> str:
    """Return 256 random bits as 64 lowercase hex characters."""
    return secrets.token_hex(TOKEN_BYTES)


def is_valid_token(token: object) -> bool:
    return isinstance(token, str) and _TOKEN_RE.fullmatch(token) is not None
