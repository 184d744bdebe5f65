"""
auth/models.py -- Domain dataclasses for credential entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, the flows, and the routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Account:
    """One registered user.

    username is compared as an exact string -- no case folding, no trimming.
    Whatever the caller registered is what the caller must present at login.

    password_hash is the self-describing bcrypt output. It is excluded from
    repr() so an Account that ends up in a log line or a traceback does not
    carry the hash with it.

    There is no update path: once written, username, password_hash, role, and
    created_at never change for the lifetime of the record.
    """

    username: str
    password_hash: str = field(repr=False)
    role: str
    created_at: datetime
    id: int | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified view of a session token."""

    username: str
    role: str
    issued_at: datetime
    expires_at: datetime
