"""
auth/errors.py -- Exception taxonomy for the credential lifecycle.

Two tiers:

  Primitive / adapter errors -- raised by the hasher, the token issuer and
  store implementations. They carry detail (driver messages, digest format
  problems) and are meant for logs, not for end callers.

      StoreError, DuplicateUsername, AccountNotFound
      MalformedHashError, TokenIssueError

  Flow-boundary errors -- the only errors auth/service.py lets out. Every
  primitive error is collapsed into one of these four before it reaches an
  inbound adapter (HTTP route, CLI).

      InvalidCredentialsInput  -- malformed input, never reaches the store
      UsernameTaken            -- registration conflict; safe to reveal
      AuthenticationDenied     -- wrong password OR unknown user; one message
      SystemFailure            -- infrastructure fault; opaque to the caller

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Primitive / adapter errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """The credential store could not complete an operation."""


class DuplicateUsername(StoreError):
    """save_account() hit the store's uniqueness constraint."""

    def __init__(self, username: str) -> None:
        super().__init__(f"username already exists: {username!r}")
        self.username = username


class AccountNotFound(Exception):
    """find_account() found no record for the username.

    Deliberately not a StoreError: a missing account is a normal lookup
    outcome, not an infrastructure fault.
    """

    def __init__(self, username: str) -> None:
        super().__init__(f"no account for username: {username!r}")
        self.username = username


class MalformedHashError(ValueError):
    """A stored digest is not a hash the hasher understands."""


class TokenIssueError(Exception):
    """Signing a session token failed."""


# ---------------------------------------------------------------------------
# Flow-boundary errors
# ---------------------------------------------------------------------------


class CredentialError(Exception):
    """Base class for every error the use-case surface raises."""

    code: str = "credential_error"
    message: str = "Credential operation failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class InvalidCredentialsInput(CredentialError):
    code = "validation_error"
    message = "Username and password must not be empty."


class UsernameTaken(CredentialError):
    code = "conflict"
    message = "A user with that username already exists."


class AuthenticationDenied(CredentialError):
    """Generic login failure.

    Raised with the class default message only. Never pass a custom message:
    the text must be identical for "no such user" and "wrong password".
    """

    code = "bad_credentials"
    message = "Invalid username or password."

    def __init__(self) -> None:
        super().__init__()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AuthenticationDenied) and str(other) == str(self)

    def __hash__(self) -> int:
        return hash((AuthenticationDenied, str(self)))


class SystemFailure(CredentialError):
    code = "internal_error"
    message = "The credential service is temporarily unavailable."
