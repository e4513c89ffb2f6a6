"""
rolegate.auth.passwords

Secret hashing for the credential store.

Responsibilities:
- bcrypt hashing/verification for user, admin and hospital passwords.
- HMAC-SHA256 digests for agency access codes (deterministic, so they can be
  looked up by digest through a unique index).
- Generate new agency access codes.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

import bcrypt

_CODE_DIGITS = 10


class SecretHasher:
    """
    bcrypt is used directly (no passlib wrapper). Passwords are capped at the API
    layer well below bcrypt's 72-byte truncation limit.
    """

    def __init__(self, *, rounds: int, code_key: str) -> None:
        self._rounds = rounds
        self._code_key = code_key.encode("utf-8")
        # Verified against when an identifier is unknown so that a miss costs the
        # same bcrypt work as a wrong password.
        self._dummy_hash = self.hash_password(secrets.token_urlsafe(16))

    def hash_password(self, plain: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, plain: str, hashed: str | None) -> bool:
        target = self._dummy_hash if hashed is None else hashed
        try:
            matched = bcrypt.checkpw(plain.encode("utf-8"), target.encode("utf-8"))
        except ValueError:
            # Malformed stored hash, or a password over bcrypt's 72-byte limit.
            return False
        return matched and hashed is not None

    def digest_access_code(self, code: str) -> str:
        return hmac.new(self._code_key, code.encode("utf-8"), hashlib.sha256).hexdigest()


def generate_access_code() -> str:
    # 10 digits, never starting with 0.
    low = 10 ** (_CODE_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))


# --- Module Notes -----------------------------------------------------------
# The access-code digest key is the JWT secret: leaking the database alone does
# not let anyone replay stored digests as codes.
