"""bcrypt-backed password hashing."""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)


class CredentialHasher:
    """One-way password hashing with a configurable bcrypt work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a salted bcrypt secret; every call yields a different value."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, secret: str | None) -> bool:
        """Return ``True`` when ``plaintext`` matches ``secret``; fails closed."""
        if not secret:
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), secret.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            logger.warning("password comparison failed: %s", exc)
            return False
