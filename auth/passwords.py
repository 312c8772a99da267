"""
auth/passwords.py -- One-way password hashing (bcrypt).

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection builds a >72-byte password that bcrypt 4.x rejects. The 72-byte
limit itself is enforced at the API layer (SessionRequest validator), so the
hasher never sees longer input from a request.

Timing: the login route runs exactly one bcrypt operation on both branches.
An unknown username is hashed (register), a known one is verified (login).
Both cost the same work factor, so response time does not tell a caller
which branch ran.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10


class CredentialManager:
    """Hash and verify passwords with a fixed bcrypt work factor.

    Holds no state beyond the work factor. One instance is shared by all
    requests (see api/main.py lifespan).
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def verify(self, hashed: str, plain: str) -> bool:
        """Return True if the plaintext matches the hash.

        The comparison is bcrypt's own constant-time check. A stored value that
        is not a bcrypt hash counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
