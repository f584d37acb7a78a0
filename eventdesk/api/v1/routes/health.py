from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.clock import utcnow
from eventdesk.db.models.user import RoleEnum
from eventdesk.db.repositories import count_users
from eventdesk.db.session import get_session
from eventdesk.schemas import HealthOut

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthOut)
async def health_check(session: AsyncSession = Depends(get_session)):
    """
    Health check that also proves the database answers.

    Returns:
        Status, user counts by role and the server time
    """
    return {
        "status": "healthy",
        "stats": {
            "totalUsers": await count_users(session),
            "managers": await count_users(session, RoleEnum.MANAGER),
            "regularUsers": await count_users(session, RoleEnum.REGULAR),
        },
        "timestamp": utcnow(),
    }
