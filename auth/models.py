"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors
catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is a self-contained bcrypt digest (salt and cost factor
    embedded). id is None before the record is written to the database.
    """

    username: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Who a request acts as, as carried in a signed session token.

    Derived, never persisted. Valid for as long as the token that carries it.
    """

    id: str
    username: str
