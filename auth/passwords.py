"""
auth/passwords.py -- bcrypt password hashing and timing-equalized login.

Passwords: bcrypt used directly (no passlib wrapper). passlib's internal
     wrap-bug detection builds a password longer than 72 bytes, which
     bcrypt 4.x rejects. Each digest embeds its own salt and cost factor,
     so verify() needs nothing but the digest.

Timing: authenticate_user() always runs exactly one bcrypt check, against
     a dummy digest when the username is unknown, so response time does not
     reveal whether a username exists.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import bcrypt

from core.errors import InputError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

# bcrypt only looks at the first 72 bytes; bcrypt 4.1+ refuses longer input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way salted hashing and verification of credentials.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("hunter2")
        hasher.verify("hunter2", digest)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # Computed once so the first unknown-username login is not slower
        # than later ones.
        self._dummy_hash = self.hash("shiplog_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of plain with a fresh random salt."""
        raw = plain.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise InputError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed.

        Pure predicate: an empty, malformed or mismatched digest and an empty
        plaintext all give False rather than an exception.
        """
        if not plain or not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def burn(self, plain: str) -> None:
        """Spend one bcrypt check's worth of time without a real digest."""
        self.verify(plain or "x", self._dummy_hash)


def authenticate_user(store: UserStore, hasher: PasswordHasher, username: str, password: str) -> User | None:
    """Authenticate a username/password pair with timing equalization.

    - Unknown username: bcrypt runs against the dummy digest (same cost)
    - Wrong password: bcrypt runs against the real digest (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None:
        # Equalize timing -- do NOT return before running bcrypt
        hasher.burn(password)
        return None
    if not hasher.verify(password, user.hashed_password):
        return None
    return user
