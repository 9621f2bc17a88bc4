"""Verification of Firebase/Google ID tokens presented at federated signin.

Google's signing certificates are fetched over a ``requests`` session wrapped
with cachecontrol so the certificate response is reused until it expires. Each
thread keeps its own session, so no lock is held across the provider call.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import cachecontrol
import google.auth.exceptions
import google.auth.transport.requests
import google.oauth2.id_token
import requests

from ..domain.contracts import VerifiedIdentity
from ..domain.errors import DependencyFailure, InvalidAssertion

logger = logging.getLogger(__name__)

LOW_RES_AVATAR_MARKER = "s96-c"
HIGH_RES_AVATAR_MARKER = "s384-c"

TokenVerifier = Callable[..., dict[str, Any]]
SessionFactory = Callable[[], requests.Session]


def cached_session() -> requests.Session:
    return cachecontrol.CacheControl(requests.session())


def upscale_avatar(picture: str | None) -> str | None:
    """Swap the provider's 96px avatar size marker for the 384px one."""
    if not picture:
        return None
    return picture.replace(LOW_RES_AVATAR_MARKER, HIGH_RES_AVATAR_MARKER)


class IdentityProviderVerifier:
    """Validate identity provider assertions and extract the verified claims."""

    def __init__(
        self,
        project_id: str,
        *,
        session_factory: SessionFactory = cached_session,
        verify_token: TokenVerifier = google.oauth2.id_token.verify_firebase_token,
    ) -> None:
        if not project_id:
            raise ValueError("a Firebase project id is required to check the token audience")
        self._project_id = project_id
        self._session_factory = session_factory
        # requests sessions are not thread safe
        self._local = threading.local()
        self._verify_token = verify_token

    def verify(self, id_token: str) -> VerifiedIdentity:
        """Return the email, display name and avatar asserted by ``id_token``.

        Raises
        ------
        InvalidAssertion
            When the token is malformed, expired, wrongly signed or has no email.
        DependencyFailure
            When the provider's signing certificates cannot be fetched.
        """
        if not id_token:
            raise InvalidAssertion("identity token is required")
        try:
            request = google.auth.transport.requests.Request(session=self._session())
            claims = self._verify_token(id_token, request, audience=self._project_id)
        except google.auth.exceptions.TransportError as exc:
            logger.error("identity provider unreachable: %s", exc)
            raise DependencyFailure("identity provider unavailable") from exc
        except (ValueError, google.auth.exceptions.GoogleAuthError) as exc:
            logger.info("rejected identity assertion: %s", exc)
            raise InvalidAssertion(
                "failed to authenticate you with google. Try with some other google account."
            ) from exc

        email = (claims or {}).get("email")
        if not email:
            raise InvalidAssertion("identity assertion carries no email")
        name = claims.get("name") or email.split("@")[0]
        return VerifiedIdentity(email=email, name=name, picture=upscale_avatar(claims.get("picture")))

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = self._session_factory()
        return session
