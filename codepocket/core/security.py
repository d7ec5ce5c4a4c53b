"""Security utilities for API keys and invitation codes."""

import hashlib
import secrets

API_KEY_PREFIX = "cpk_"
API_KEY_DISPLAY_LENGTH = 10


def generate_api_key() -> str:
    """Generate a new editor-extension API key.

    Returns ``cpk_`` followed by a 43-character URL-safe token (256 bits of entropy).
    """
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """SHA-256 hex digest used to store and look up API keys."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def mask_api_key(api_key: str) -> str:
    """Display form of a key: its first characters followed by dots."""
    return f"{api_key[:API_KEY_DISPLAY_LENGTH]}••••••••"


def generate_invite_code() -> str:
    """Generate a URL-safe invitation code for share links."""
    return secrets.token_urlsafe(24)
