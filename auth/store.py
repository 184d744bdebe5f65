"""
auth/store.py -- SQLAlchemy Core persistence adapter for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository and
implements auth.ports.CredentialStore; _row_to_account is the mapper. Flow
and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) is enforced by the database, not by a read-then-write in
  Python. Two concurrent save_account() calls for the same name race on the
  unique index; exactly one INSERT wins and the other surfaces as
  DuplicateUsername.

  Driver errors are wrapped in StoreError with the original chained as
  __cause__. The message never includes the password hash.

DB URL: Settings.database_url (default sqlite:///./credentials.db).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AccountNotFound, DuplicateUsername, StoreError
from auth.models import Account

logger = logging.getLogger("credentials.store")

_DEFAULT_DB_URL = "sqlite:///./credentials.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False),
    Column("created_at", String(32), nullable=False),  # ISO 8601, UTC
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """SQL-backed CredentialStore.

    Usage:
        store = AccountStore("sqlite:///./credentials.db")
        store.save_account(Account(username="alice", password_hash=h, role="USER", created_at=now))
        account = store.find_account("alice")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def save_account(self, account: Account) -> None:
        """Insert a new account in a single statement.

        Raises DuplicateUsername if the username is taken, StoreError for any
        other database failure. The INSERT either commits whole or not at all.
        """
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        username=account.username,
                        password_hash=account.password_hash,
                        role=account.role,
                        created_at=_to_iso(account.created_at),
                    )
                )
        except IntegrityError as exc:
            raise DuplicateUsername(account.username) from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to save account {account.username!r}") from exc
        account.id = result.inserted_primary_key[0]
        logger.info("Account saved (id=%s username=%s)", account.id, account.username)

    def find_account(self, username: str) -> Account:
        """Look up an account by exact username (case-sensitive)."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreError("failed to load account") from exc
        if row is None:
            raise AccountNotFound(username)
        try:
            return _row_to_account(row)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"stored account {username!r} is corrupt") from exc

    def is_username_available(self, username: str) -> bool:
        """Return True if no account uses this username right now.

        Advisory only -- save_account() is what actually guards uniqueness.
        """
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(_accounts.c.id).where(_accounts.c.username == username)).first()
        except SQLAlchemyError as exc:
            raise StoreError("failed to check username availability") from exc
        return row is None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except SQLAlchemyError:
            logger.exception("Account store health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        created_at=datetime.fromisoformat(row.created_at),
    )
