"""Auth service orchestrating credential checks, account creation, and session issuance."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter

from .account import Account
from .contracts import NewAccount, SessionView
from .errors import (
    AuthError,
    DependencyFailure,
    DuplicateEmail,
    EmailExists,
    InvalidCredentials,
    NotFound,
    StoreError,
    WrongAuthMethod,
)
from .usernames import UsernameAllocator
from .validation import validate_signup
from ..repository import AccountRepository
from ..security.federation import IdentityProviderVerifier
from ..security.passwords import CredentialHasher
from ..security.tokens import SessionIssuer

logger = logging.getLogger(__name__)

AUTH_ATTEMPTS = Counter(
    "identity_auth_attempts_total",
    "Authentication attempts by flow and outcome.",
    ["flow", "outcome"],
)


@contextmanager
def _track(flow: str) -> Iterator[None]:
    try:
        yield
    except AuthError as exc:
        AUTH_ATTEMPTS.labels(flow=flow, outcome=type(exc).__name__).inc()
        logger.warning("%s failed: %s", flow, exc.message)
        raise
    AUTH_ATTEMPTS.labels(flow=flow, outcome="success").inc()


class AuthService:
    """Password and federated authentication flows over an account store.

    Every flow either returns a :class:`SessionView` or raises an
    :class:`AuthError`. The account insert is the only write and is the last
    fallible step before the session is minted, so a failed flow never leaves a
    partially created account behind.
    """

    def __init__(
        self,
        repository: AccountRepository,
        *,
        hasher: CredentialHasher,
        verifier: IdentityProviderVerifier,
        issuer: SessionIssuer,
        allocator: UsernameAllocator | None = None,
    ) -> None:
        """Store the collaborators injected at application startup."""
        self._repository = repository
        self._hasher = hasher
        self._verifier = verifier
        self._issuer = issuer
        self._allocator = allocator or UsernameAllocator(repository)

    def signup(self, fullname: str, email: str, password: str) -> SessionView:
        """Create a password account and return its first session.

        Raises
        ------
        InvalidInput
            For the first failing payload check; nothing is hashed or stored.
        EmailExists
            When an account with the email already exists.
        DependencyFailure
            When the account store is unavailable.
        """
        with _track("signup"):
            validate_signup(fullname, email, password)
            try:
                secret = self._hasher.hash(password)
            except ValueError as exc:
                raise DependencyFailure("could not secure password") from exc
            account = self._create(
                NewAccount(
                    email=email,
                    username=self._allocate(email),
                    fullname=fullname,
                    password_secret=secret,
                    federated_auth=False,
                )
            )
            logger.info("password account created: %s", account.account_id)
            return self._issuer.present(account)

    def signin(self, email: str, password: str) -> SessionView:
        """Authenticate a password account."""
        with _track("signin"):
            account = self._find(email)
            if account is None:
                raise NotFound("email not found")
            if account.federated_auth:
                raise WrongAuthMethod(
                    "account was created using google. try logging in with google."
                )
            if not self._hasher.verify(password, account.password_secret):
                raise InvalidCredentials("invalid password")
            return self._issuer.present(account)

    def federated_signin(self, id_token: str) -> SessionView:
        """Authenticate with an identity provider token.

        Creates a federated account on first use of a verified email; later
        calls for the same email only log in and perform no writes.
        """
        with _track("federated_signin"):
            identity = self._verifier.verify(id_token)
            account = self._find(identity.email)
            if account is not None:
                if not account.federated_auth:
                    raise WrongAuthMethod(
                        "this email was signed up without google. "
                        "Please log in with password to access the account."
                    )
                return self._issuer.present(account)

            account = self._create(
                NewAccount(
                    email=identity.email,
                    username=self._allocate(identity.email),
                    fullname=identity.name,
                    profile_img=identity.picture,
                    federated_auth=True,
                )
            )
            logger.info("federated account created: %s", account.account_id)
            return self._issuer.present(account)

    def _find(self, email: str) -> Account | None:
        try:
            return self._repository.find_by_email(email)
        except StoreError as exc:
            raise DependencyFailure("account store unavailable") from exc

    def _allocate(self, email: str) -> str:
        try:
            return self._allocator.allocate(email)
        except StoreError as exc:
            raise DependencyFailure("account store unavailable") from exc

    def _create(self, payload: NewAccount) -> Account:
        try:
            return self._repository.insert(payload)
        except DuplicateEmail as exc:
            raise EmailExists("email already exists") from exc
        except StoreError as exc:
            raise DependencyFailure("could not create account") from exc
