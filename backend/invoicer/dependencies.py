"""
Request dependencies: database session and owner identity.

Every core operation takes the owner explicitly; routes obtain it here from
the bearer token. A request without a usable identity is rejected with 401
before any service code runs.
"""
import logging
from uuid import UUID

from fastapi import HTTPException, Request, status

from invoicer.database import get_db
from invoicer.utils.auth_internal import owner_id_from_token

logger = logging.getLogger(__name__)

__all__ = ["get_db", "get_current_owner"]


def _bearer_token(request: Request):
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth[7:].strip() or None
    return None


def get_current_owner(request: Request) -> UUID:
    """Require a valid JWT and return the owner id from its `sub` claim."""
    token = _bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    owner_id = owner_id_from_token(token)
    if owner_id is None:
        logger.info("Rejected bearer token on %s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return owner_id

