"""Tests for approval token generation."""

import re

from omnirec_picker.token import generate_approval_token, is_valid_token


def test_token_is_64_lowercase_hex():
    for _ in range(50):
        token = generate_approval_token()
        assert re.fullmatch(r"[0-9a-f]{64}", token)
        assert len(bytes.fromhex(token)) == 32


def test_consecutive_tokens_differ():
    assert generate_approval_token() != generate_approval_token()


def test_is_valid_token():
    assert is_valid_token("0" * 64)
    assert not is_valid_token("0" * 64 + "\n")
    assert not is_valid_token(None)
