from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from types import SimpleNamespace

import psycopg
import pytest
from psycopg import errors

from publish_identity.domain.contracts import NewAccount
from publish_identity.domain.errors import DuplicateEmail, DuplicateUsername, StoreError
from publish_identity.repository import USERNAME_CONSTRAINT, AccountRepository


class FakeCursor:
    def __init__(self, rows, error):
        self._rows = list(rows)
        self._error = error
        self.statements: list[tuple[str, tuple]] = []

    def execute(self, sql, params=None):
        self.statements.append((sql, params))
        if self._error is not None:
            raise self._error

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False

    @contextmanager
    def cursor(self, row_factory=None):
        yield self._cursor

    def commit(self):
        self.committed = True


class FakePool:
    """Stands in for ``psycopg_pool.ConnectionPool``."""

    def __init__(self, rows=(), error=None, connect_error=None):
        self.cursor = FakeCursor(rows, error)
        self.conn = FakeConnection(self.cursor)
        self._connect_error = connect_error

    @contextmanager
    def connection(self):
        if self._connect_error is not None:
            raise self._connect_error
        yield self.conn


class UsernameClash(errors.UniqueViolation):
    @property
    def diag(self):
        return SimpleNamespace(constraint_name=USERNAME_CONSTRAINT)


NEW_ACCOUNT = NewAccount(
    email="anita@example.com",
    username="anita",
    fullname="Anita Writer",
    password_secret="$2b$10$secret",
)


def _row(account_id="acct-1", federated=False):
    return (
        account_id,
        "anita@example.com",
        "anita",
        "Anita Writer",
        datetime.now(timezone.utc),
        None if federated else "$2b$10$secret",
        None,
        federated,
    )


def test_insert_returns_mapped_account_and_commits():
    pool = FakePool(rows=[_row()])

    account = AccountRepository(pool).insert(NEW_ACCOUNT)

    assert account.account_id == "acct-1"
    assert account.username == "anita"
    assert account.password_secret == "$2b$10$secret"
    assert pool.conn.committed
    sql, params = pool.cursor.statements[0]
    assert "INSERT INTO accounts" in sql
    assert params[1:4] == ("anita@example.com", "anita", "Anita Writer")


def test_insert_maps_email_violation_to_duplicate_email():
    pool = FakePool(error=errors.UniqueViolation("duplicate key value"))

    with pytest.raises(DuplicateEmail):
        AccountRepository(pool).insert(NEW_ACCOUNT)
    assert not pool.conn.committed


def test_insert_maps_username_violation_to_duplicate_username():
    pool = FakePool(error=UsernameClash("duplicate key value"))

    with pytest.raises(DuplicateUsername):
        AccountRepository(pool).insert(NEW_ACCOUNT)


def test_connection_failure_becomes_store_error():
    pool = FakePool(connect_error=psycopg.OperationalError("connection refused"))

    with pytest.raises(StoreError):
        AccountRepository(pool).find_by_email("anita@example.com")


def test_find_by_email_maps_federated_row():
    pool = FakePool(rows=[_row(federated=True)])

    account = AccountRepository(pool).find_by_email("anita@example.com")

    assert account is not None
    assert account.federated_auth is True
    assert account.password_secret is None


def test_find_by_email_returns_none_when_absent():
    assert AccountRepository(FakePool()).find_by_email("ghost@example.com") is None


def test_exists_by_username_queries_username_column():
    pool = FakePool(rows=[(1,)])

    assert AccountRepository(pool).exists_by_username("anita") is True
    sql, params = pool.cursor.statements[0]
    assert "WHERE username = %s" in sql
    assert params == ("anita",)


def test_ensure_schema_declares_unique_constraints():
    pool = FakePool()

    AccountRepository(pool).ensure_schema()

    sql, _ = pool.cursor.statements[0]
    assert "accounts_email_key UNIQUE" in sql
    assert "accounts_username_key UNIQUE" in sql
