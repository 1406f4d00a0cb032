"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in todos/models.py -- dataclasses own domain shape; stores, token helpers and
routes do the work.

Layer rule: no imports from api/, core/, or todos/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Identity:
    """A registered user.

    id is an opaque UUID4 string assigned at registration and never changed.
    It is the value every todo record stores as its owner.

    email is kept as the user typed it; uniqueness is enforced on the
    normalized (stripped, lower-cased) form in auth/store.py.
    """

    id: str
    email: str
    hashed_password: str
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """The verified payload of an access token.

    Only produced by TokenValidator.validate() after signature, issuer,
    audience and expiry checks have all passed. issued_at / expires_at are
    Unix timestamps exactly as they appear on the wire.
    """

    subject: str
    email: str
    name_identifier: str
    issuer: str
    audience: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class Caller:
    """The authenticated identity making the current request.

    Built from TokenClaims by auth/dependencies.py. Route handlers pass
    caller.id into every TodoService operation.
    """

    id: str
    email: str
