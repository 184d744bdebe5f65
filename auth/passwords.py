"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly, no passlib wrapper. Every hash gets a fresh salt from
  bcrypt.gensalt(), so hashing the same password twice yields two different
  digests. The "$2b$<cost>$<salt+digest>" output carries algorithm, cost and
  salt, which makes verification self-describing -- old hashes keep verifying
  after the configured cost changes.

  bcrypt only looks at the first 72 bytes of input, and bcrypt >= 5 refuses
  longer input outright. hash_password() rejects such passwords with
  ValueError; the registration flow checks the limit first and reports it as
  a validation error.

  verify_password() separates a clean mismatch (False) from a digest that is
  not a bcrypt hash at all (MalformedHashError). The authentication flow logs
  the second case and then collapses both into the same denial.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import re
from functools import lru_cache

import bcrypt

from auth.errors import MalformedHashError

DEFAULT_ROUNDS = 12

# bcrypt silently ignores everything past this many bytes.
MAX_PASSWORD_BYTES = 72

_BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]\$\d{2}\$[./A-Za-z0-9]{53}$")


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError for an empty password or one longer than
    MAX_PASSWORD_BYTES once UTF-8 encoded.
    """
    if not plain:
        raise ValueError("cannot hash an empty password")
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    The comparison inside bcrypt.checkpw is constant-time. Raises
    MalformedHashError when `hashed` is not a bcrypt hash.
    """
    if not isinstance(hashed, str) or not _BCRYPT_HASH_RE.match(hashed):
        raise MalformedHashError("stored password hash is not a bcrypt hash")
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # hash_password() never accepts such input, so nothing can match it.
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError as exc:
        raise MalformedHashError("stored password hash could not be parsed") from exc


@lru_cache
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a throwaway hash at the given cost, computed once per cost.

    The authentication flow verifies against this when the username does not
    exist, so an unknown user costs the same bcrypt work as a wrong password
    and response time does not reveal which one happened.
    """
    return hash_password("credentials_timing_dummy", rounds=rounds)
