"""
CodeHire — FastAPI application entry-point.

Run with:
    uvicorn codehire.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from codehire import models  # noqa: F401  (registers every table on Base.metadata)
from codehire.config import settings
from codehire.database import Base, engine, get_db
from codehire.errors import CodeHireError
from codehire.models.project import Project, ProjectStatus
from codehire.models.team import Team
from codehire.models.user import User

# ── Import routers ──
from codehire.routers import (
    applications,
    auth,
    conversations,
    notifications,
    payments,
    projects,
    teams,
    users,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables on startup (migrations own the schema elsewhere) ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started (environment=%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Freelance marketplace: hirers post paid projects, coders and teams bid on them.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))


@app.exception_handler(CodeHireError)
async def codehire_error_handler(request: Request, exc: CodeHireError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# ── Register API routers ──
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(applications.router)
app.include_router(payments.router)
app.include_router(notifications.router)
app.include_router(teams.router)
app.include_router(conversations.router)


# ── Landing ──
@app.get("/")
async def homepage(db: AsyncSession = Depends(get_db)):
    """Service name and live marketplace counts."""
    users_count = (await db.execute(select(func.count(User.id)))).scalar() or 0
    active_count = (
        await db.execute(
            select(func.count(Project.id)).where(Project.status == ProjectStatus.ACTIVE)
        )
    ).scalar() or 0
    teams_count = (await db.execute(select(func.count(Team.id)))).scalar() or 0

    return {
        "app": settings.APP_NAME,
        "stats": {
            "users": users_count,
            "active_projects": active_count,
            "teams": teams_count,
        },
    }
