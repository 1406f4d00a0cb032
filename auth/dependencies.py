"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

One auth method: the Authorization: Bearer <token> header. The token is
verified by the TokenValidator stored on app.state during lifespan startup.
No server-side session is consulted -- a valid token is sufficient.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/ or todos/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Caller
from auth.tokens import TokenValidator


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_user(request: Request) -> Caller | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns the Caller on success, None on any failure. Never raises --
    callers that need a hard 401 should use get_current_user().
    """
    token = _bearer_token(request)
    if token is None:
        return None
    validator: TokenValidator = request.app.state.token_validator
    claims = validator.validate(token)
    if claims is None:
        return None
    return Caller(id=claims.subject, email=claims.email)


def get_current_user(request: Request) -> Caller:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Every failure cause (missing header, bad signature, expired token, wrong
    audience) produces the same response.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(caller: Caller = Depends(get_current_user)): ...
    """
    caller = try_get_current_user(request)
    if caller is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthenticated", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
