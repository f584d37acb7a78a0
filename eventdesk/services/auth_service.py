"""Authentication service: password login and one-time verification codes."""
import re
from datetime import datetime, timedelta
from typing import Callable, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utcnow, ensure_utc
from eventdesk.core.config import settings
from eventdesk.core.errors import BadRequest, NotFound, Unauthorized
from eventdesk.core.logging import logger
from eventdesk.core.security import create_user_token, generate_verification_code, verify_password
from eventdesk.db import repositories as repo
from eventdesk.db.models.user import RoleEnum
from eventdesk.db.session import transaction
from eventdesk.schemas import LoginRequest, SendCodeRequest, VerifyCodeRequest

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


class AuthService:
    """
    Service layer for authentication operations.

    Handles password login and the passwordless verification-code flow.
    Token validation itself lives in ``eventdesk.auth``.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        """
        Initialize AuthService with database session.

        Args:
            session: SQLAlchemy async session
            clock: Returns the current aware UTC time; used for code expiry
        """
        self.session = session
        self.clock = clock

    async def login(self, payload: LoginRequest) -> Dict[str, Any]:
        """
        Authenticate user by email and password.

        Returns:
            Dictionary with message, user and access token

        Raises:
            BadRequest: If email or password is missing
            Unauthorized: If credentials are invalid or the account has no password
        """
        if not payload.email or not payload.password:
            raise BadRequest("Email and password are required")

        user = await repo.get_user_by_email(self.session, payload.email)
        if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
            logger.warning(f"Failed login attempt for {payload.email}")
            raise Unauthorized("Invalid email or password")

        async with transaction(self.session):
            user.last_login_at = self.clock()

        logger.info(f"User {user.id} logged in with password")
        return {"message": "Login successful", "user": user, "token": create_user_token(user)}

    async def send_code(self, payload: SendCodeRequest) -> Dict[str, Any]:
        """
        Issue a fresh 6-digit code for ``payload.email``.

        Unknown emails get a new active REGULAR account. Any earlier code for
        the email is discarded so only one is outstanding at a time.
        """
        if not is_valid_email(payload.email):
            raise BadRequest("Valid email is required")
        email = payload.email.strip().lower()

        user = await repo.get_user_by_email(self.session, email)
        code = generate_verification_code()
        expires_at = self.clock() + timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)

        async with transaction(self.session):
            if user is None:
                user = await repo.create_user(self.session, email=email, role=RoleEnum.REGULAR)
                logger.info(f"Created user {user.id} for {email} on first code request")
            await repo.replace_verification_code(self.session, email, code, expires_at)

        logger.info(f"Verification code issued for {email}")
        logger.debug(f"Verification code for {email}: {code}")

        response = {"message": "Verification code sent"}
        if settings.is_development:
            response["code"] = code
        return response

    async def verify_code(self, payload: VerifyCodeRequest) -> Dict[str, Any]:
        """
        Consume a verification code and log the user in.

        Raises:
            BadRequest: If the code is missing, unknown, already used or expired
            NotFound: If the user behind the email no longer exists
            Unauthorized: If the account has been deactivated
        """
        if not payload.email or not payload.code:
            raise BadRequest("Email and code are required")
        email = payload.email.strip().lower()

        vc = await repo.find_unused_verification_code(self.session, email, payload.code.strip())
        now = self.clock()
        if vc is None or ensure_utc(vc.expires_at) <= now:
            logger.warning(f"Rejected verification code for {email}")
            raise BadRequest("Invalid or expired verification code")

        user = await repo.get_user_by_email(self.session, email)
        if user is None:
            raise NotFound("User not found")
        if not user.is_active:
            logger.warning(f"Verification code login refused for inactive user {user.id}")
            raise Unauthorized()

        async with transaction(self.session):
            vc.used = True
            user.last_login_at = now

        logger.info(f"User {user.id} logged in with verification code")
        return {"message": "Verification successful", "user": user, "token": create_user_token(user)}
