from __future__ import annotations

import uuid
from datetime import datetime, timezone
from threading import Lock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from publish_identity.api import routes
from publish_identity.domain.account import Account
from publish_identity.domain.contracts import NewAccount, VerifiedIdentity
from publish_identity.domain.errors import DuplicateEmail, DuplicateUsername, InvalidAssertion
from publish_identity.domain.service import AuthService
from publish_identity.security.passwords import CredentialHasher
from publish_identity.security.tokens import SessionIssuer


class FakeRepository:
    """In-memory repository mimicking the Postgres uniqueness constraints."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.calls: list[str] = []
        self.inserts = 0
        self._lock = Lock()

    def find_by_email(self, email: str) -> Account | None:
        self.calls.append("find_by_email")
        return self.accounts.get(email)

    def exists_by_username(self, username: str) -> bool:
        self.calls.append("exists_by_username")
        return any(account.username == username for account in self.accounts.values())

    def insert(self, payload: NewAccount) -> Account:
        self.calls.append("insert")
        with self._lock:
            if payload.email in self.accounts:
                raise DuplicateEmail(payload.email)
            if self.exists_by_username(payload.username):
                raise DuplicateUsername(payload.username)
            account = Account(
                account_id=str(uuid.uuid4()),
                email=payload.email,
                username=payload.username,
                fullname=payload.fullname,
                created_at=datetime.now(timezone.utc),
                password_secret=payload.password_secret,
                profile_img=payload.profile_img,
                federated_auth=payload.federated_auth,
            )
            self.accounts[payload.email] = account
            self.inserts += 1
        return account


class FakeVerifier:
    """Identity provider stand-in keyed by token string."""

    def __init__(self) -> None:
        self.identities: dict[str, VerifiedIdentity] = {}

    def verify(self, id_token: str) -> VerifiedIdentity:
        try:
            return self.identities[id_token]
        except KeyError:
            raise InvalidAssertion("failed to authenticate you with google") from None


class RecordingHasher(CredentialHasher):
    """bcrypt hasher at the minimum work factor that records its calls."""

    def __init__(self) -> None:
        super().__init__(rounds=4)
        self.hash_calls = 0
        self.verify_calls = 0

    def hash(self, plaintext: str) -> str:
        self.hash_calls += 1
        return super().hash(plaintext)

    def verify(self, plaintext: str, secret: str | None) -> bool:
        self.verify_calls += 1
        return super().verify(plaintext, secret)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def hasher() -> RecordingHasher:
    return RecordingHasher()


@pytest.fixture
def issuer() -> SessionIssuer:
    return SessionIssuer("test-secret", "test.identity")


@pytest.fixture
def service(repository, verifier, hasher, issuer) -> AuthService:
    return AuthService(repository, hasher=hasher, verifier=verifier, issuer=issuer)


@pytest.fixture
def api_client(service):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(routes.router)
    routes.install_error_handlers(app)
    app.state.auth_service = service

    with TestClient(app) as client:
        yield client
