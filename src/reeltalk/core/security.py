"""JWT helpers for the opaque caller identity.

Identity is issued by an external session service; this module only mints
tokens for tooling/tests and decodes the ``sub`` claim of incoming ones.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from reeltalk.core.errors import Unauthorized
from reeltalk.core.settings import settings


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token whose subject is the user id."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_user_id(token: str) -> str:
    """Return the user id carried by ``token``.

    Raises:
        Unauthorized: If the token is invalid, expired or has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise Unauthorized("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise Unauthorized("Could not validate credentials")
    return str(subject)
