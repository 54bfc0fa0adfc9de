"""Credential fingerprints used as cache keys."""

from __future__ import annotations

import hashlib

TOKEN_HASH_LENGTH = 16


def hash_token(secret: str) -> str:
    """Return a short one-way fingerprint of a credential."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:TOKEN_HASH_LENGTH]


def cache_key(endpoint: str, secret: str) -> str:
    """Build a cache key from an endpoint and a credential fingerprint.

    The raw secret never appears in the key, so multiple accounts against the
    same endpoint stay isolated without secrets being held as dict keys.
    """
    return f"{endpoint}:{hash_token(secret)}"
