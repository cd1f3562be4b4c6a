"""
api/routes/users.py -- Sign-up and sign-in endpoints.

Routes:
  POST /signup  -- create an account; answers {"token": ...}
  POST /signin  -- password login; answers {"token": ...}

Both are public: they sit outside AuthGate and call PasswordHasher and
TokenService directly.

Security:
  Both routes are rate-limited per client IP (LOGIN_RATE_LIMIT).
  authenticate_user() provides timing equalization -- use it, never inline.
  Unknown username and wrong password give the same 401 "nope".
  Cache-Control: no-store on every token response.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter
from api.models import Credentials, TokenResponse
from auth.models import Identity, User
from auth.passwords import PasswordHasher, authenticate_user
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import AuthError, InputError

logger = logging.getLogger("shiplog.api")

_settings = get_settings()

router = APIRouter()


def _token_response(token: str) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/signup", response_model=TokenResponse)
@limiter.limit(_settings.login_rate_limit)
def signup(request: Request, body: Credentials) -> JSONResponse:
    """Create a user and sign them in.

    A taken username surfaces as InputError (400, type "input"); no second
    row is written because UNIQUE(username) rejects the insert.
    """
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.tokens

    new_user = User(username=body.username, hashed_password=hasher.hash(body.password))
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise InputError("username already taken") from exc

    logger.info("User %s signed up", user_id)
    return _token_response(tokens.issue(Identity(id=user_id, username=body.username)))


@router.post("/signin", response_model=TokenResponse)
@limiter.limit(_settings.login_rate_limit)
def signin(request: Request, body: Credentials) -> JSONResponse:
    """Authenticate with username and password and return a fresh token."""
    user_store: UserStore = request.app.state.user_store
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.tokens

    user = authenticate_user(user_store, hasher, body.username, body.password)
    if user is None:
        raise AuthError("nope")

    return _token_response(tokens.issue(Identity(id=user.id, username=user.username)))
