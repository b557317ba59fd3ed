"""
Bearer token verification for the authenticated barbershop routes.

Tokens are issued by the dashboard's auth service and signed with JWT_SECRET.
The only claim this service relies on is ``barbershop_ids``: the list of
barbershops the caller may act for.
"""

import logging
import time
from typing import Annotated, Any
from uuid import UUID, uuid4

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.config import get_settings

logger = logging.getLogger(__name__)

JWT_EXPIRATION_HOURS = 24

security = HTTPBearer(auto_error=False)


def create_access_token(
    subject: str,
    barbershop_ids: list[UUID],
    expires_in_seconds: int = JWT_EXPIRATION_HOURS * 3600,
) -> str:
    """
    Create a signed access token.

    The auth service owns token issuance; this helper exists for scripts and tests.
    """
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": subject,
        "exp": now + expires_in_seconds,
        "iat": now,
        "jti": str(uuid4()),
        "barbershop_ids": [str(barbershop_id) for barbershop_id in barbershop_ids],
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Verify JWT signature and expiry and return the payload."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not isinstance(payload.get("barbershop_ids"), list):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token carries no barbershop scope",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> dict[str, Any]:
    """Dependency to get the current authenticated caller."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verify_token(credentials.credentials)


async def require_barbershop_access(
    barbershop_id: UUID,
    user: Annotated[dict[str, Any], Depends(get_current_user)],
) -> dict[str, Any]:
    """Dependency that rejects callers not scoped to the path's barbershop."""
    if str(barbershop_id) not in user["barbershop_ids"]:
        logger.warning(
            f"Caller {user.get('sub')} denied access to barbershop",
            extra={"barbershop_id": barbershop_id},
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act on this barbershop",
        )
    return user
