"""
tests/conftest.py -- Shared fixtures for the credential service tests.

This module provides:
  - InMemoryCredentialStore: a dict-backed fake satisfying auth.ports.CredentialStore,
    with hooks to inject store failures
  - signing_config / issuer: a TokenIssuer with a fixed test key
  - memory_store / service: both flows wired around the fake store
  - api_client: TestClient on the real FastAPI app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API client because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

DEBUG and BCRYPT_ROUNDS must be set before any core/auth import so
get_settings() auto-generates SECRET_KEY instead of raising, and so bcrypt runs
at its cheapest cost factor.
"""

from __future__ import annotations

import dataclasses
import os
import threading
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.errors import AccountNotFound, DuplicateUsername
from auth.models import Account
from auth.service import CredentialService, build_credential_service
from auth.store import AccountStore
from auth.tokens import SigningConfig, TokenIssuer

TEST_ROUNDS = 4
TEST_SECRET_KEY = "test-signing-key-0123456789abcdef0123456789abcdef"


# ---------------------------------------------------------------------------
# In-memory store fake
# ---------------------------------------------------------------------------


class InMemoryCredentialStore:
    """Dict-backed CredentialStore for flow tests.

    Uniqueness is enforced under a lock inside save_account(), mirroring the
    atomic check-and-insert a real store provides. Set fail_with to an
    exception instance to make every operation raise it.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()
        self.fail_with: Exception | None = None
        self.calls: list[str] = []

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if self.fail_with is not None:
            raise self.fail_with

    def save_account(self, account: Account) -> None:
        self._maybe_fail("save_account")
        with self._lock:
            if account.username in self._accounts:
                raise DuplicateUsername(account.username)
            account.id = len(self._accounts) + 1
            self._accounts[account.username] = dataclasses.replace(account)

    def find_account(self, username: str) -> Account:
        self._maybe_fail("find_account")
        with self._lock:
            account = self._accounts.get(username)
        if account is None:
            raise AccountNotFound(username)
        return dataclasses.replace(account)

    def is_username_available(self, username: str) -> bool:
        self._maybe_fail("is_username_available")
        with self._lock:
            return username not in self._accounts

    def put(self, account: Account) -> None:
        """Seed a record directly, bypassing the flows."""
        self._accounts[account.username] = account


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def signing_config() -> SigningConfig:
    return SigningConfig(secret_key=TEST_SECRET_KEY)


@pytest.fixture
def issuer(signing_config: SigningConfig) -> TokenIssuer:
    return TokenIssuer(signing_config)


@pytest.fixture
def memory_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def service(memory_store: InMemoryCredentialStore, issuer: TokenIssuer) -> CredentialService:
    return build_credential_service(memory_store, issuer, rounds=TEST_ROUNDS)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(store: AccountStore, issuer: TokenIssuer):
    """Return a lifespan that wires test objects into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = store
        app.state.token_issuer = issuer
        app.state.credential_service = build_credential_service(store, issuer, rounds=TEST_ROUNDS)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, TokenIssuer], None, None]:
    """Yield (client, issuer) backed by an isolated shared-memory account store.

    The DB name includes the test module name so modules never share rows.
    """
    db_name = request.module.__name__.replace(".", "_")
    store = AccountStore(f"sqlite:///file:test_{db_name}?mode=memory&cache=shared&uri=true")
    issuer = TokenIssuer(SigningConfig(secret_key=TEST_SECRET_KEY))

    app.router.lifespan_context = _patch_lifespan(store, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, issuer

    store.close()
