"""Database repository for account data."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

import psycopg
from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import NewAccount
from .domain.errors import DuplicateEmail, DuplicateUsername, StoreError

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "accounts_email_key"
USERNAME_CONSTRAINT = "accounts_username_key"

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    email TEXT NOT NULL CONSTRAINT {EMAIL_CONSTRAINT} UNIQUE,
    username TEXT NOT NULL CONSTRAINT {USERNAME_CONSTRAINT} UNIQUE,
    fullname TEXT NOT NULL,
    password_secret TEXT,
    profile_img TEXT,
    federated_auth BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL,
    CONSTRAINT accounts_federated_without_secret
        CHECK (NOT federated_auth OR password_secret IS NULL)
)
"""

_COLUMNS = (
    "account_id, email, username, fullname, created_at, "
    "password_secret, profile_img, federated_auth"
)


class AccountRepository:
    """Postgres-backed account persistence.

    Email and username uniqueness are enforced by table constraints, so two
    concurrent inserts for the same email resolve to one row and one
    ``DuplicateEmail``.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    yield cur
                conn.commit()
        except errors.UniqueViolation:
            raise
        except psycopg.Error as exc:
            logger.error("account store failure: %s", exc)
            raise StoreError(str(exc)) from exc

    def ensure_schema(self) -> None:
        """Create the accounts table and its constraints if missing."""
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)

    def find_by_email(self, email: str) -> Account | None:
        """Fetch the account registered under ``email`` or return ``None``."""
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM accounts WHERE email = %s", (email,))
            row = cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when an account already holds ``username``."""
        with self._cursor() as cur:
            cur.execute("SELECT 1 FROM accounts WHERE username = %s", (username,))
            return cur.fetchone() is not None

    def insert(self, payload: NewAccount) -> Account:
        """Persist a new account and return it with its assigned identifier.

        Raises
        ------
        DuplicateEmail
            When another account already holds the email.
        DuplicateUsername
            When another account already holds the username.
        StoreError
            For any other database failure.
        """
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO accounts ({_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (
                        account_id,
                        payload.email,
                        payload.username,
                        payload.fullname,
                        now,
                        payload.password_secret,
                        payload.profile_img,
                        payload.federated_auth,
                    ),
                )
                record = cur.fetchone()
        except errors.UniqueViolation as exc:
            if exc.diag.constraint_name == USERNAME_CONSTRAINT:
                raise DuplicateUsername(payload.username) from exc
            raise DuplicateEmail(payload.email) from exc
        return self._map_record(record)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            email=row[1],
            username=row[2],
            fullname=row[3],
            created_at=row[4],
            password_secret=row[5],
            profile_img=row[6],
            federated_auth=row[7],
        )
