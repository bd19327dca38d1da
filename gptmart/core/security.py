"""Security helpers (admin PIN hashing and verification)."""

from __future__ import annotations

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_pin(pin: str) -> str:
    """Create an Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(pin.strip())
    return f"{_PREFIX}{hashed}"


def verify_pin(pin: str | None, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    supplied = str(pin or "").strip()
    if not supplied or not stored:
        return False
    if stored.startswith(_PREFIX):
        stored = stored[len(_PREFIX) :]
    try:
        return _ph.verify(stored, supplied)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False
