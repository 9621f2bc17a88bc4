"""Utilities for issuing and resolving session JWTs."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..domain.account import Account
from ..domain.contracts import SessionView


class InvalidSessionToken(Exception):
    """Raised when a presented session token cannot be mapped to an account."""


class SessionIssuer:
    """Mint stateless HS256 session tokens bound to an account identifier.

    Tokens carry no ``exp`` claim; there is no expiry or revocation.
    """

    algorithm = "HS256"

    def __init__(self, secret: str, issuer: str) -> None:
        self._secret = secret
        self._issuer = issuer

    def issue(self, account_id: str) -> str:
        """Create a signed JWT whose ``id`` claim is the account identifier.

        Parameters
        ----------
        account_id:
            Identifier assigned by the account store.

        Returns
        -------
        str
            The encoded token.
        """
        payload: dict[str, Any] = {
            "id": account_id,
            "iss": self._issuer,
            "iat": int(time.time()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def resolve(self, token: str) -> str:
        """Verify ``token`` and return the account identifier it was issued for.

        Raises
        ------
        InvalidSessionToken
            When the signature or issuer does not validate or the ``id`` claim is missing.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self._issuer,
                options={"require": ["id", "iss"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidSessionToken(str(exc)) from exc
        return str(claims["id"])

    def present(self, account: Account) -> SessionView:
        """Mint a token for ``account`` and pair it with its public profile fields."""
        return SessionView(
            access_token=self.issue(account.account_id),
            profile_img=account.profile_img,
            username=account.username,
            fullname=account.fullname,
        )
