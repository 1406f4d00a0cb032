"""
api/routes/v1/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /api/v1/auth/register  -- create an identity (public, rate-limited)
  POST /api/v1/auth/login     -- email/password -> signed access token (public, rate-limited)
  GET  /api/v1/auth/me        -- identity carried by the caller's token (requires auth)

Security:
  Register and login are rate-limited per client IP (AUTH_RATE_LIMIT).
  CredentialStore.authenticate() provides timing equalization -- use it, never inline.
  Unknown email and wrong password return the identical 401 body.
  Cache-Control: no-store on login responses so tokens never land in caches.
  Passwords and tokens are never logged.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
)
from auth.credentials import CredentialStore, DuplicateEmailError, WeakPasswordError
from auth.dependencies import get_current_user
from auth.models import Caller
from auth.tokens import TokenIssuer
from core.config import get_settings

logger = logging.getLogger("todolist.api")

_settings = get_settings()

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.auth_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> MessageResponse:
    """Create a new identity.

    Password policy failures return 400 with every failed rule listed.
    An email that already exists (in any letter case) returns 409 and changes
    nothing.
    """
    credentials: CredentialStore = request.app.state.credentials
    logger.info("Registration attempt")
    try:
        identity = credentials.create(body.email, body.password)
    except WeakPasswordError as exc:
        logger.warning("Registration failed: password policy (%d rule(s))", len(exc.problems))
        raise HTTPException(
            status_code=400,
            detail={
                "code": "weak_password",
                "message": "Password does not meet the requirements.",
                "detail": " ".join(exc.problems),
            },
        ) from exc
    except DuplicateEmailError as exc:
        logger.warning("Registration failed: email already registered")
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with this email already exists."},
        ) from exc

    logger.info("User registered: %s", identity.id)
    return MessageResponse(message="User registered successfully")


@limiter.limit(_settings.auth_rate_limit)
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed access token.

    Returns the same generic error for unknown email and wrong password
    ("bad_credentials") to avoid leaking account existence.
    """
    credentials: CredentialStore = request.app.state.credentials
    issuer: TokenIssuer = request.app.state.token_issuer

    identity = credentials.authenticate(body.email, body.password)
    if identity is None:
        logger.warning("Login failed")
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Invalid email or password.")
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = issuer.issue(identity)
    logger.info("User logged in: %s", identity.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, email=identity.email).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(caller: Caller = Depends(get_current_user)) -> MeResponse:
    """Return the identity carried by the caller's token."""
    return MeResponse(id=caller.id, email=caller.email)
