"""
auth/passwords.py -- bcrypt password hashing.

Salt policy: by default one bcrypt salt is generated when the hasher is built
(once per process) and reused for every hash() call. Hashes produced this way
are still ordinary bcrypt strings with the salt embedded, so verify() works
against any stored digest, whichever salt produced it. Set
HASH_SALT_PER_PASSWORD=true to draw a fresh salt for every password instead.

Using bcrypt directly rather than passlib[bcrypt]: passlib's wrap-bug
detection trips over bcrypt 4.x. Inputs are cut to bcrypt's 72-byte limit
in both hash() and verify() so newer bcrypt releases, which reject longer
inputs, behave like older ones that truncated silently.
"""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger("authgate.auth")

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    def __init__(self, rounds: int = 10, per_password_salt: bool = False) -> None:
        self.rounds = rounds
        self.per_password_salt = per_password_salt
        self._salt = bcrypt.gensalt(rounds)
        # Verified against when the username does not exist, so both login
        # failure causes cost one bcrypt check.
        self._dummy_hash = self.hash("authgate_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of the given plaintext password."""
        salt = bcrypt.gensalt(self.rounds) if self.per_password_salt else self._salt
        return bcrypt.hashpw(_encode(plain), salt).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the stored digest.

        bcrypt.checkpw re-derives using the salt embedded in hashed and
        compares in constant time. Unparseable digests are a mismatch.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password digest is not a valid bcrypt hash")
            return False

    def burn(self, plain: str) -> None:
        """Spend one verification's worth of work against the dummy digest."""
        self.verify(plain, self._dummy_hash)
