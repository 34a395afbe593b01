from __future__ import annotations

import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    """Pre-hash to avoid bcrypt's 72-byte input limit; base64 keeps NUL bytes out."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


# PUBLIC_INTERFACE
class PasswordHasher:
    """Salted bcrypt hashing for stored user passwords."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_prehash(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Return True if `password` matches `hashed`; malformed hashes never match."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(_prehash(password), hashed.encode("utf-8"))
        except ValueError:
            return False
