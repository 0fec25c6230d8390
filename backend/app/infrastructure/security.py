"""Credentials — password hashing and signed bearer tokens.

Invariants:
    - Passwords stored as pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>
    - Tokens are <user_id>.<expires_unix>.<hmac_sha256 hex>; any mismatch -> None
    - All comparisons are constant-time (hmac.compare_digest)

Design Decisions:
    - hashlib/hmac only: the auth boundary is a thin collaborator of the
      assignment core, not a full identity provider
"""

import hashlib
import hmac
import secrets
import time
from uuid import UUID

_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, iterations: int = 240_000) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt), iterations,
    ).hex()
    return f"{_ALGORITHM}${iterations}${salt}${digest}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, digest = encoded.split("$")
        rounds = int(iterations)
        salt_bytes = bytes.fromhex(salt)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt_bytes, rounds,
    ).hex()
    return hmac.compare_digest(candidate, digest)


def _sign(message: str, secret: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def issue_token(
    user_id: UUID, secret: str, ttl_seconds: int, now: float | None = None,
) -> str:
    expires = int((now if now is not None else time.time()) + ttl_seconds)
    message = f"{user_id}.{expires}"
    return f"{message}.{_sign(message, secret)}"


def verify_token(token: str, secret: str, now: float | None = None) -> UUID | None:
    """Return the user id a valid, unexpired token was issued for."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    raw_user_id, raw_expires, signature = parts
    expected = _sign(f"{raw_user_id}.{raw_expires}", secret)
    if not hmac.compare_digest(expected, signature):
        return None
    try:
        expires = int(raw_expires)
        user_id = UUID(raw_user_id)
    except ValueError:
        return None
    if expires < (now if now is not None else time.time()):
        return None
    return user_id
