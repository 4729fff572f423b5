"""Shared-secret JWT gate for the gateway routes."""

import functools
import logging

import jwt
from flask import jsonify, request

logger = logging.getLogger(__name__)

JWT_HEADER_NAME = "X-JWT-Token"
HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


def verify_token(token: str, secret: str) -> bool:
    """Return True when token is an HMAC-signed JWT valid for secret."""
    try:
        jwt.decode(token, secret, algorithms=HMAC_ALGORITHMS)
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected token: %s", exc)
        return False
    return True


def token_required(secret: str):
    """Route decorator enforcing a valid token when a secret is configured.

    With an empty secret every request passes through.
    """
    def decorator(view):
        @functools.wraps(view)
        def wrapped(*args, **kwargs):
            if not secret:
                return view(*args, **kwargs)

            token = request.headers.get(JWT_HEADER_NAME, "")
            if not token:
                return jsonify(error="Token not specified"), 401
            if not verify_token(token, secret):
                return jsonify(error="Error parsing token"), 403
            return view(*args, **kwargs)

        return wrapped

    return decorator
