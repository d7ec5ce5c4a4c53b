"""Unit tests for API key and invite code helpers."""

import hashlib

from codepocket.core.security import (
    API_KEY_PREFIX,
    generate_api_key,
    generate_invite_code,
    hash_api_key,
    mask_api_key,
)


def test_generated_keys_have_prefix_and_are_unique():
    keys = {generate_api_key() for _ in range(20)}
    assert len(keys) == 20
    assert all(k.startswith(API_KEY_PREFIX) for k in keys)
    assert all(len(k) == len(API_KEY_PREFIX) + 43 for k in keys)


def test_hash_is_sha256_hex():
    assert hash_api_key("cpk_abc") == hashlib.sha256(b"cpk_abc").hexdigest()


def test_mask_shows_only_prefix():
    masked = mask_api_key("cpk_0123456789abcdef")
    assert masked.startswith("cpk_012345")
    assert "6789" not in masked


def test_invite_codes_are_url_safe():
    code = generate_invite_code()
    assert len(code) == 32
    assert all(c.isalnum() or c in "-_" for c in code)
