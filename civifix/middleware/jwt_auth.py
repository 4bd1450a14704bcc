"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.jwt_user_id.

A missing, malformed, expired or wrong-type token never blocks the request:
the caller is simply anonymous and each service decides whether that is
acceptable (AuthenticationError -> 401).
"""

import logging

import jwt as pyjwt
from flask import g, request

from civifix.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def current_identity():
    """Opaque user id of the caller, or None when anonymous."""
    return getattr(g, "jwt_user_id", None)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.debug("Invalid access token on %s", path)
            return

        sub = payload.get("sub")
        g.jwt_user_id = str(sub) if sub else None
