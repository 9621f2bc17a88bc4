"""Username derivation for newly created accounts."""

from __future__ import annotations

import logging
import secrets
from typing import Protocol

logger = logging.getLogger(__name__)

# Alphanumerics without look-alikes (0/O, 1/l/I).
SUFFIX_ALPHABET = "23456789abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ"


class UsernameLookup(Protocol):
    def exists_by_username(self, username: str) -> bool: ...


class UsernameAllocator:
    """Derive a handle from an email address, suffixing it once on collision.

    The suffixed candidate is not checked again, so uniqueness of the result is
    probabilistic. The store's unique constraint on ``username`` is the final
    authority.
    """

    def __init__(self, lookup: UsernameLookup, *, suffix_length: int = 5) -> None:
        self._lookup = lookup
        self._suffix_length = suffix_length

    def allocate(self, email: str) -> str:
        """Return the email local part, or the local part plus a random suffix if taken."""
        candidate = email.split("@")[0]
        if self._lookup.exists_by_username(candidate):
            suffixed = candidate + self._suffix()
            logger.debug("username %s taken, allocated %s", candidate, suffixed)
            return suffixed
        return candidate

    def _suffix(self) -> str:
        return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(self._suffix_length))
