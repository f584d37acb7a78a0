"""Authentication routes: password login, verification codes and token validation."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.auth import get_current_user
from eventdesk.core.rate_limit import limiter
from eventdesk.db.models.user import User
from eventdesk.db.session import get_session
from eventdesk.schemas import (
    AuthResponse,
    LoginRequest,
    SendCodeRequest,
    SendCodeResponse,
    ValidateResponse,
    VerifyCodeRequest,
)
from eventdesk.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    """
    Dependency injection for AuthService.

    Args:
        session: Database session

    Returns:
        AuthService instance
    """
    return AuthService(session)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login with email and password.

    Rate limit: 5 requests per minute

    Returns:
        The user and a signed access token

    Raises:
        HTTPException: 400 if a field is missing, 401 if credentials are invalid
    """
    return await auth_service.login(payload)


@router.post("/send-code", response_model=SendCodeResponse, response_model_exclude_none=True)
@limiter.limit("3/minute")
async def send_code(
    request: Request,
    payload: SendCodeRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Issue a 6-digit login code, valid for 15 minutes.

    Rate limit: 3 requests per minute
    """
    return await auth_service.send_code(payload)


@router.post("/verify-code", response_model=AuthResponse)
@limiter.limit("10/minute")
async def verify_code(
    request: Request,
    payload: VerifyCodeRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Exchange a verification code for an access token.

    Rate limit: 10 requests per minute
    """
    return await auth_service.verify_code(payload)


@router.get("/validate", response_model=ValidateResponse)
async def validate(current_user: User = Depends(get_current_user)):
    """Return the current user for a valid bearer token."""
    return {"user": current_user, "valid": True}
