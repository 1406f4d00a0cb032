"""
auth/tokens.py -- Access token issuing and validation (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub / email / nameid (the identity id, twice, so any compliant
       validator finds it under either name), iss, aud, iat and exp.

  Validation: signature, issuer, audience and expiry are all checked with
       zero leeway. Every failure -- bad signature, wrong audience, expired,
       truncated, not a JWT at all -- collapses to a single None. Callers
       cannot tell the causes apart, and neither can a client probing the
       API, which denies an oracle on signature or expiry internals.

  Statelessness: there is no session table and no revocation list. A valid,
       unexpired, correctly-signed token is the whole proof of authentication;
       its lifetime (TOKEN_EXPIRE_MINUTES) is the revocation boundary.

Both classes receive their Settings explicitly and hold no mutable state, so
one instance of each is shared across all requests without locking.

Layer rule: no imports from api/ or todos/. core/ is allowed for Settings.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Identity, TokenClaims
from core.config import Settings

logger = logging.getLogger("todolist.auth")

ALGORITHM = "HS256"

# Short JWT name for the .NET/WS-Federation "nameidentifier" claim.
NAME_IDENTIFIER_CLAIM = "nameid"

_REQUIRED_CLAIMS = ("sub", "email", NAME_IDENTIFIER_CLAIM, "iat", "exp", "iss", "aud")


class TokenIssuer:
    """Mint signed access tokens for authenticated identities."""

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.secret_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._ttl = timedelta(minutes=settings.token_expire_minutes)

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, identity: Identity, now: datetime | None = None) -> str:
        """Encode a signed JWT for identity.

        Args:
            identity: The identity that just proved its password.
            now:      Issue time. Defaults to the current UTC time; tests pass
                      a fixed value to produce already-expired tokens.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": identity.id,
            "email": identity.email,
            NAME_IDENTIFIER_CLAIM: identity.id,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)


class TokenValidator:
    """Verify inbound access tokens and extract the caller's claims."""

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.secret_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience

    def validate(self, token: str) -> TokenClaims | None:
        """Decode and verify a JWT. Returns TokenClaims or None on any failure.

        Returning None (rather than raising) keeps the caller simple: any
        invalid token is treated as unauthenticated.
        """
        # A JWT is base64url segments joined by dots, always ASCII.
        if not token or not token.isascii():
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={
                    "leeway": 0,
                    "require_exp": True,
                    "require_iat": True,
                    "require_iss": True,
                    "require_aud": True,
                    "require_sub": True,
                },
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc.__class__.__name__)
            return None

        if any(payload.get(name) in (None, "") for name in _REQUIRED_CLAIMS):
            return None
        if payload["sub"] != payload[NAME_IDENTIFIER_CLAIM]:
            return None
        try:
            return TokenClaims(
                subject=str(payload["sub"]),
                email=str(payload["email"]),
                name_identifier=str(payload[NAME_IDENTIFIER_CLAIM]),
                issuer=str(payload["iss"]),
                audience=str(payload["aud"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (TypeError, ValueError):
            return None
