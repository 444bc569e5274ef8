from __future__ import annotations

import logging

from authlib.jose import JsonWebToken
from authlib.jose.errors import JoseError

from services.upload.domain.errors import AuthenticationError

LOGGER = logging.getLogger(__name__)

_JWT = JsonWebToken(["HS256"])


def get_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must be a Bearer token")
    return token


class JwtIdentityResolver:
    """Resolves the caller's user id from an HS256 access token."""

    def __init__(self, secret: str) -> None:
        self._secret = secret

    def resolve(self, token: str) -> str:
        try:
            claims = _JWT.decode(token, self._secret)
            claims.validate()
        except JoseError as exc:
            LOGGER.warning("Rejected access token: %s", exc)
            raise AuthenticationError("Invalid or expired access token") from exc
        except ValueError as exc:
            LOGGER.warning("Malformed access token: %s", exc)
            raise AuthenticationError("Invalid or expired access token") from exc
        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Access token has no subject")
        return str(subject)
