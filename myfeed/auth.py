"""
Request identity.

The identity provider sits in front of this API and forwards the opaque
user identifier in the X-User-Id header. Nothing here authenticates; every
read and write is simply scoped by that identifier.
"""

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

USER_ID_HEADER = APIKeyHeader(name="X-User-Id", auto_error=False)

MAX_USER_ID_LENGTH = 128


def get_current_user(user_id: str | None = Security(USER_ID_HEADER)) -> str:
    """
    Read the caller's user identifier from the request headers.

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    user_id = (user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity. Provide X-User-Id header.",
        )
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity",
        )
    return user_id
