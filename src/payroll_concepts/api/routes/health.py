"""Liveness, readiness and health endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_concepts import __version__
from payroll_concepts.api.dependencies import DbSession
from payroll_concepts.config import get_settings
from payroll_concepts.models.base import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status plus the versions that identify calculations."""

    status: str
    checked_at: datetime
    database: bool
    version: str
    engine_version: str
    default_currency: str


async def database_reachable(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database ping failed", exc_info=True)
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health(db: DbSession) -> HealthResponse:
    """Report database reachability and the engine version in use.

    A different ``engine_version`` yields different calculation ids for
    the same input and catalog.
    """
    settings = get_settings()
    db_ok = await database_reachable(db)
    return HealthResponse(
        status="ok" if db_ok else "degraded",
        checked_at=utcnow(),
        database=db_ok,
        version=__version__,
        engine_version=settings.engine_version,
        default_currency=settings.default_currency,
    )


@router.get("/ready", responses={503: {"description": "Database unavailable"}})
async def ready(db: DbSession) -> dict[str, str]:
    """Ready once the database answers; payroll records cannot be served otherwise."""
    if not await database_reachable(db):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ready"}


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "alive"}
