"""
auth/tokens.py -- Signed, stateless session tokens.

JWT: python-jose with HS256. Tokens carry the identity pair (id, username),
     an issued-at claim and, when an expiry is configured, an exp claim.
     Verification raises AuthError on any failure -- the boundary handler
     turns that into a 401.

Signing key: passed in at construction from core.config.get_settings().
     An empty key raises ConfigError when the service is built (app
     startup), never on a request.

Known limitation: there is no revocation list. A token stays valid for its
     full signed lifetime once issued.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Identity
from core.errors import AuthError, ConfigError

logger = logging.getLogger("shiplog.auth")

_ALGORITHM = "HS256"


class TokenService:
    """Issues and verifies signed session tokens.

    Usage:
        tokens = TokenService(settings.jwt_secret, settings.token_expire_seconds)
        token = tokens.issue(Identity(id=user.id, username=user.username))
        identity = tokens.verify(token)
    """

    def __init__(self, secret: str, expire_seconds: int = 0) -> None:
        if not secret:
            raise ConfigError("No JWT secret configured")
        self._secret = secret
        self.expire_seconds = expire_seconds

    def issue(self, identity: Identity) -> str:
        """Encode a signed JWT for identity."""
        now = datetime.now(timezone.utc)
        payload: dict = {
            "id": identity.id,
            "username": identity.username,
            "iat": now,
        }
        if self.expire_seconds > 0:
            payload["exp"] = now + timedelta(seconds=self.expire_seconds)
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Identity:
        """Decode and verify a JWT. Raises AuthError on any failure.

        Covers a bad signature, a malformed token, an expired exp claim and
        a payload missing either identity claim.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError as exc:
            logger.info("Rejected token: %s", exc.__class__.__name__)
            raise AuthError("not valid token") from exc
        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, str) or not isinstance(username, str):
            raise AuthError("not valid token")
        return Identity(id=user_id, username=username)
