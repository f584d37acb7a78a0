from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from eventdesk.db.session import get_session
from sqlalchemy.ext.asyncio import AsyncSession
from eventdesk.db.models.user import User
from eventdesk.db.repositories import get_user
from eventdesk.core.errors import Unauthorized
from eventdesk.core.security import decode_token
from eventdesk.core.logging import logger
from eventdesk.schemas import TokenData

# auto_error=False so a missing header becomes a 401 from authenticate(), not FastAPI's 403
security = HTTPBearer(auto_error=False)


def authenticate(token: Optional[str]) -> TokenData:
    """
    Verify a bearer token and extract the caller's identity.

    Raises:
        Unauthorized: If the token is missing, invalid, expired or not an access token
    """
    if not token:
        raise Unauthorized("No token provided")

    try:
        payload = decode_token(token)
    except ValueError as e:
        logger.debug(f"Token rejected: {e}")
        raise Unauthorized("Invalid or expired token")

    if payload.get("type") != "access":
        raise Unauthorized("Invalid token type")

    try:
        user_id = UUID(str(payload.get("sub") or payload.get("user_id")))
    except ValueError:
        raise Unauthorized("Invalid token payload")

    return TokenData(user_id=user_id, email=payload.get("email"), role=payload.get("role"))


async def _load_user(session: AsyncSession, token_data: TokenData) -> User:
    user = await get_user(session, token_data.user_id)
    if not user or not user.is_active:
        raise Unauthorized("User not found. Please log in again.")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    Resolve the authenticated user from the Authorization header.

    Raises:
        Unauthorized: If no valid token is sent or its user no longer exists
    """
    token = credentials.credentials if credentials else None
    return await _load_user(session, authenticate(token))


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if credentials is None:
        return None
    return await _load_user(session, authenticate(credentials.credentials))
