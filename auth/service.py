"""
auth/service.py -- Registration and authentication flows.

This is the flow boundary: the one place where primitive errors (store
driver failures, malformed digests, signing errors) are collapsed into the
four public categories in auth/errors.py before anything reaches an inbound
adapter.

  RegistrationService.register()
      validate -> (optional availability pre-check) -> hash -> single insert.
      No token is issued on registration.

  AuthenticationService.authenticate()
      lookup -> verify -> issue. Returns a tagged result rather than raising:

          Authenticated(token)  -- credentials matched, token signed
          Denied()              -- unknown user OR wrong password, same value
          SystemFault(reason)   -- store/signing failure; reason is for logs

      Callers must handle all three; match on the type.

  CredentialService
      The use-case surface adapters call. register_user() raises,
      load_user() unwraps the tagged result into a token or an exception.

Security:
  Unknown usernames still cost one bcrypt verify (against dummy_hash()) so the
  denial path for a missing account takes as long as a wrong password.

  Passwords and hashes are never logged. Usernames are.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from auth.errors import (
    AccountNotFound,
    AuthenticationDenied,
    DuplicateUsername,
    InvalidCredentialsInput,
    MalformedHashError,
    StoreError,
    SystemFailure,
    TokenIssueError,
    UsernameTaken,
)
from auth.models import Account
from auth.passwords import DEFAULT_ROUNDS, MAX_PASSWORD_BYTES, dummy_hash, hash_password, verify_password
from auth.ports import CredentialStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("credentials.auth")

DEFAULT_ROLE = "USER"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Authentication outcomes (tagged result)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Authenticated:
    token: str
    username: str
    role: str


@dataclass(frozen=True)
class Denied:
    pass


@dataclass(frozen=True)
class SystemFault:
    reason: str


AuthResult = Union[Authenticated, Denied, SystemFault]

DENIED = Denied()


# ---------------------------------------------------------------------------
# Registration flow
# ---------------------------------------------------------------------------


class RegistrationService:
    """Creates accounts: one hash, one insert, nothing else."""

    def __init__(
        self,
        store: CredentialStore,
        default_role: str = DEFAULT_ROLE,
        rounds: int = DEFAULT_ROUNDS,
        precheck: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._default_role = default_role
        self._rounds = rounds
        self._precheck = precheck
        self._clock = clock

    def register(self, username: str, password: str) -> Account:
        """Register a new account and return it.

        Raises InvalidCredentialsInput, UsernameTaken or SystemFailure.
        """
        if not username or not password:
            raise InvalidCredentialsInput()
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidCredentialsInput(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        if self._precheck:
            try:
                available = self._store.is_username_available(username)
            except StoreError as exc:
                logger.error("Registration pre-check failed for %s: %s", username, exc)
                raise SystemFailure() from exc
            except Exception as exc:
                logger.exception("Unexpected error during registration pre-check for %s", username)
                raise SystemFailure() from exc
            if not available:
                logger.info("Registration rejected, username taken: %s", username)
                raise UsernameTaken()

        try:
            password_hash = hash_password(password, rounds=self._rounds)
        except ValueError as exc:
            logger.error("Password hashing failed for %s: %s", username, exc)
            raise SystemFailure() from exc

        account = Account(
            username=username,
            password_hash=password_hash,
            role=self._default_role,
            created_at=self._clock(),
        )
        try:
            self._store.save_account(account)
        except DuplicateUsername as exc:
            # Lost the race against a concurrent registration, or precheck is off.
            logger.info("Registration rejected, username taken: %s", username)
            raise UsernameTaken() from exc
        except StoreError as exc:
            logger.error("Registration store write failed for %s: %s", username, exc)
            raise SystemFailure() from exc
        except Exception as exc:
            logger.exception("Unexpected error saving account %s", username)
            raise SystemFailure() from exc

        logger.info("Registered account %s (role=%s)", username, account.role)
        return account


# ---------------------------------------------------------------------------
# Authentication flow
# ---------------------------------------------------------------------------


class AuthenticationService:
    """Checks a username/password pair and issues a session token on success."""

    def __init__(self, store: CredentialStore, issuer: TokenIssuer, rounds: int = DEFAULT_ROUNDS) -> None:
        self._store = store
        self._issuer = issuer
        self._rounds = rounds

    def _burn_verify(self, password: str) -> None:
        verify_password(password or "", dummy_hash(self._rounds))

    def authenticate(self, username: str, password: str) -> AuthResult:
        """Run lookup -> verify -> issue. Never raises; see the module docstring."""
        try:
            return self._authenticate(username, password)
        except Exception as exc:
            logger.exception("Unexpected error authenticating %s", username)
            return SystemFault(reason=f"unexpected error: {type(exc).__name__}")

    def _authenticate(self, username: str, password: str) -> AuthResult:
        if not username or not password:
            self._burn_verify(password)
            return DENIED

        try:
            account = self._store.find_account(username)
        except AccountNotFound:
            # Same bcrypt cost as a real mismatch.
            self._burn_verify(password)
            logger.info("Login denied for %s", username)
            return DENIED
        except StoreError as exc:
            logger.error("Account lookup failed for %s: %s", username, exc)
            return SystemFault(reason=f"store error: {exc}")

        try:
            matches = verify_password(password, account.password_hash)
        except MalformedHashError as exc:
            logger.warning("Stored hash for %s is malformed: %s", username, exc)
            matches = False
        if not matches:
            logger.info("Login denied for %s", username)
            return DENIED

        try:
            token = self._issuer.issue(account.username, account.role)
        except TokenIssueError as exc:
            logger.error("Token issuance failed for %s: %s", username, exc)
            return SystemFault(reason=f"token issue error: {exc}")

        logger.info("Login succeeded for %s", username)
        return Authenticated(token=token, username=account.username, role=account.role)


# ---------------------------------------------------------------------------
# Use-case surface
# ---------------------------------------------------------------------------


class CredentialService:
    """What inbound adapters (HTTP routes, CLI) call.

    register_user() -> None, raising InvalidCredentialsInput / UsernameTaken /
        SystemFailure.
    load_user() -> signed token, raising AuthenticationDenied / SystemFailure.
    """

    def __init__(self, registration: RegistrationService, authentication: AuthenticationService) -> None:
        self.registration = registration
        self.authentication = authentication

    def register_user(self, username: str, password: str) -> None:
        self.registration.register(username, password)

    def load_user(self, username: str, password: str) -> str:
        result = self.authentication.authenticate(username, password)
        if isinstance(result, Authenticated):
            return result.token
        if isinstance(result, Denied):
            raise AuthenticationDenied()
        raise SystemFailure()


def build_credential_service(
    store: CredentialStore,
    issuer: TokenIssuer,
    default_role: str = DEFAULT_ROLE,
    rounds: int = DEFAULT_ROUNDS,
    precheck: bool = True,
) -> CredentialService:
    """Wire both flows around one store and one issuer."""
    return CredentialService(
        registration=RegistrationService(store, default_role=default_role, rounds=rounds, precheck=precheck),
        authentication=AuthenticationService(store, issuer, rounds=rounds),
    )
