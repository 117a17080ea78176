from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from berkomunitas_api.core.settings import settings
from berkomunitas_api.db.session import get_session


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "disabled", "error"]
    detail: str | None = Field(default=None, description="Human readable status detail")
    last_error_at: str | None = Field(default=None, description="ISO timestamp of most recent error")


class ReadinessPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Service readiness", response_model=ReadinessPayload)
async def service_readiness(session: AsyncSession = Depends(get_session)) -> ReadinessPayload:
    components: Dict[str, ComponentStatus] = {}
    status: Literal["ready", "degraded", "error"] = "ready"

    database = await _evaluate_database_component(session)
    components["database"] = database
    if database.status == "error":
        status = "error"

    if settings.notifications_enabled:
        components["notifications"] = ComponentStatus(status="ready", detail="In-app notifications enabled")
    else:
        components["notifications"] = ComponentStatus(
            status="disabled",
            detail="Redemption notifications disabled via settings",
        )

    return ReadinessPayload(status=status, components=components)


async def _evaluate_database_component(session: AsyncSession) -> ComponentStatus:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as error:
        logger.warning("Database readiness check failed", error=str(error))
        return ComponentStatus(
            status="error",
            detail=f"Database unreachable ({error.__class__.__name__})",
            last_error_at=datetime.now(timezone.utc).isoformat(),
        )
    finally:
        await session.rollback()
    return ComponentStatus(status="ready", detail="Database reachable")
