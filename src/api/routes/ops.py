from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from src.config import Settings, get_settings
from src.db.connection import check_db_health
from src.handlers.abuse import RateLimiter, get_rate_limiter
from src.ops import events as ops_events
from src.ops.events import EventLevel

router = APIRouter()


class ServiceStatus(BaseModel):
    name: str
    status: Literal["ok", "degraded", "error", "unknown"]
    detail: str | None = None


class OpsStatusResponse(BaseModel):
    generated_at: str
    services: list[ServiceStatus]


class OpsEventResponse(BaseModel):
    timestamp: str
    level: EventLevel
    component: str
    event_type: str
    message: str
    correlation_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


def _require_ops_console(settings: Annotated[Settings, Depends(get_settings)]) -> None:
    if not settings.ops_console_enabled:
        raise HTTPException(status_code=404, detail="ops_console_disabled")


@router.get("/status", response_model=OpsStatusResponse)
async def status(
    settings: Annotated[Settings, Depends(get_settings)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    _: Annotated[None, Depends(_require_ops_console)],
) -> OpsStatusResponse:
    db_ok = await check_db_health()
    services = [
        ServiceStatus(name="api", status="ok"),
        ServiceStatus(
            name="database",
            status="ok" if db_ok else "error",
            detail=f"backend={settings.storage_backend}",
        ),
        ServiceStatus(
            name="rate_limiter",
            status="ok",
            detail=(
                f"{limiter.tracked_clients()} clients tracked, "
                f"{limiter.max_requests} per {limiter.window_seconds:g}s, process-local"
            ),
        ),
        ServiceStatus(
            name="event_log",
            status="ok",
            detail=f"{len(ops_events.ops_event_buffer)} events buffered",
        ),
    ]
    return OpsStatusResponse(
        generated_at=ops_events.iso_now(),
        services=services,
    )


@router.get("/events", response_model=list[OpsEventResponse])
async def events(
    _: Annotated[None, Depends(_require_ops_console)],
    limit: int = Query(100, ge=1, le=500),
    level: EventLevel | None = Query(default=None),
    event_type: str | None = Query(default=None, alias="type"),
    correlation_id: str | None = Query(default=None),
) -> list[OpsEventResponse]:
    recent = ops_events.ops_event_buffer.recent(
        limit=limit,
        level=level,
        event_type=event_type,
        correlation_id=correlation_id or None,
    )
    return [
        OpsEventResponse(
            **{
                **item,
                "message": ops_events.redact_text(item["message"]),
                "payload": ops_events.sanitize_value(item["payload"]),
            }
        )
        for item in recent
    ]
