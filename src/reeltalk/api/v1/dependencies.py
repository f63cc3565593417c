"""Shared API dependencies for identity and database access."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from reeltalk.core.security import decode_user_id
from reeltalk.db.session import get_db

# Missing credentials mean "anonymous", not an error.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Return the caller's user id, or None for anonymous callers.

    Raises:
        Unauthorized: If a token was sent but is invalid or expired.
    """
    if credentials is None:
        return None
    return decode_user_id(credentials.credentials)


# Type alias for current user dependency
CurrentUserIdDep = Annotated[str | None, Depends(get_current_user_id)]
