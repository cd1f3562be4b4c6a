"""
auth/dependencies.py -- AuthGate and its FastAPI Depends() helper.

AuthGate is the sole gate for every protected route. It accepts one
credential form: an "Authorization: Bearer <token>" header. The two
failure messages are deliberately coarse:
  "not authorized"  -- no Authorization header at all
  "not valid token" -- anything wrong with the header or the token

get_current_identity() is installed as a router-level dependency on every
protected router (see api/main.py), so no protected handler can run without
a verified Identity. Handlers that need the identity declare it again; FastAPI
caches the dependency per request, so the gate runs once.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Identity
from auth.tokens import TokenService
from core.errors import AuthError

logger = logging.getLogger("shiplog.auth")


class AuthGate:
    """Verifies a bearer credential and returns the Identity it carries."""

    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def authenticate(self, authorization: str | None) -> Identity:
        """Return the Identity for an Authorization header value.

        Raises AuthError("not authorized") when the header is missing and
        AuthError("not valid token") for every other failure.
        """
        if not authorization:
            raise AuthError("not authorized")

        scheme, _, token = authorization.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise AuthError("not valid token")

        return self.tokens.verify(token)


def get_current_identity(request: Request) -> Identity:
    """Require a verified identity and attach it to request.state.

    Use as a FastAPI dependency:
        router = APIRouter(dependencies=[Depends(get_current_identity)])

        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    gate: AuthGate = request.app.state.auth_gate
    try:
        identity = gate.authenticate(request.headers.get("Authorization"))
    except AuthError as exc:
        logger.info("Auth rejected on %s %s: %s", request.method, request.url.path, exc.message)
        raise
    request.state.identity = identity
    return identity
