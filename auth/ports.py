"""
auth/ports.py -- The credential store contract consumed by the flows.

Pattern: Port (structural interface). The flows in auth/service.py depend on
this Protocol only; auth/store.py (SQLAlchemy) and the in-memory fake in the
test suite both satisfy it without inheriting from it.

Contract every implementation must honour:
  save_account()  -- single atomic insert. Uniqueness of username is enforced
                     here, by the store's own concurrency control (unique index,
                     atomic check-and-insert). Raises DuplicateUsername on
                     conflict, StoreError on any other failure. On either error
                     nothing is left behind.
  find_account()  -- exact-string match on username. Raises AccountNotFound when
                     no record exists, StoreError on infrastructure failure.
  is_username_available()
                  -- advisory pre-check. Inherently racy: a True answer does NOT
                     reserve the name, save_account() must still reject a
                     concurrent duplicate.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from auth.models import Account


@runtime_checkable
class CredentialStore(Protocol):
    def save_account(self, account: Account) -> None: ...

    def find_account(self, username: str) -> Account: ...

    def is_username_available(self, username: str) -> bool: ...
