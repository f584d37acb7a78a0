from fastapi import FastAPI, Request, APIRouter
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from eventdesk.api.v1.routes import (
    auth as auth_router,
    events as events_router,
    registrations as registrations_router,
    users as users_router,
    health as health_router,
)
from eventdesk.db.session import engine, Base
from eventdesk.db import models  # noqa: F401  registers tables on Base.metadata
from eventdesk.cache.event_cache import close_event_cache, event_cache
from eventdesk.core.config import settings
from eventdesk.core.logging import logger
from eventdesk.core.rate_limit import limiter

app = FastAPI(title="EventDesk")

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router.router)
api_router.include_router(events_router.router)
api_router.include_router(registrations_router.router)
api_router.include_router(users_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def on_startup():
    # create tables (simple approach for local runs; use alembic elsewhere)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"EventDesk started ({settings.ENVIRONMENT}), event cache: {type(event_cache).__name__}")


@app.on_event("shutdown")
async def on_shutdown():
    await close_event_cache()
    await engine.dispose()
    logger.info("EventDesk stopped")
