"""API key verification.

Provides:
- Timing-safe comparison of a presented key with the stored key
"""

import hashlib
import secrets


def _digest(value: str) -> bytes:
    return hashlib.sha256(value.encode("utf-8")).digest()


def verify_api_key(presented: str | None, stored: str | None) -> bool:
    """Check a presented API key against the stored one.

    Both values are hashed to fixed-length digests before the
    ``secrets.compare_digest`` call, so the comparison time does not depend
    on where the values differ nor on their lengths. A missing or blank key
    never verifies, and neither does anything when no key is stored.

    Args:
        presented: Key supplied by the caller (surrounding whitespace ignored)
        stored: Key from the options store

    Returns:
        True if the keys match
    """
    presented = (presented or "").strip()
    stored = stored or ""

    matches = secrets.compare_digest(_digest(presented), _digest(stored))
    return bool(presented) and bool(stored) and matches
