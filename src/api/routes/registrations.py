from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response

from src.api.deps import parse_record_id, read_json_body
from src.api.middleware.request_context import request_client_id
from src.config import Settings, get_settings
from src.db.registrations import RegistrationStore
from src.db.stores import get_registration_store, get_visit_store
from src.db.visits import VisitStore
from src.errors import NotFoundError
from src.handlers.abuse import RateLimiter, get_rate_limiter
from src.handlers.export import registrations_to_csv
from src.handlers.moderation import registration_changes
from src.pipeline.intake import submit_registration
from src.pipeline.stats import compute_stats

logger = logging.getLogger(__name__)

router = APIRouter()

Store = Annotated[RegistrationStore, Depends(get_registration_store)]


@router.post("", status_code=201)
async def create_registration(
    request: Request,
    store: Store,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, Any]:
    record = await submit_registration(
        await read_json_body(request),
        client_id=request_client_id(request),
        store=store,
        limiter=limiter,
        user_agent=request.headers.get("user-agent"),
        settings=settings,
    )
    return record.to_public()


@router.get("")
async def list_registrations(
    store: Store,
    visit_store: Annotated[VisitStore, Depends(get_visit_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    stats: bool = Query(default=False),
) -> dict[str, Any]:
    if stats:
        snapshot = await compute_stats(
            store,
            visit_store,
            top_countries_limit=settings.stats_top_countries_limit,
            recent_limit=settings.stats_recent_activity_limit,
        )
        return snapshot.to_public()
    rows = await store.list_all()
    return {"registrations": [row.to_public() for row in rows]}


@router.get("/export")
async def export_registrations(store: Store) -> Response:
    rows = await store.list_all()
    logger.info(
        "Exported %d registrations",
        len(rows),
        extra={"event_type": "registrations.exported", "ops_payload": {"rows": len(rows)}},
    )
    return Response(
        content=registrations_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="registrations.csv"'},
    )


@router.get("/{registration_id}")
async def get_registration(registration_id: str, store: Store) -> dict[str, Any]:
    row = await store.get(parse_record_id(registration_id, "Registration"))
    return row.to_public()


@router.patch("/{registration_id}")
async def update_registration(registration_id: str, request: Request, store: Store) -> dict[str, Any]:
    record_id = parse_record_id(registration_id, "Registration")
    changes = registration_changes(await read_json_body(request))
    row = await store.update(record_id, changes)
    logger.info(
        "Registration %s updated",
        record_id,
        extra={
            "event_type": "registrations.updated",
            "ops_payload": {"registration_id": str(record_id), "fields": sorted(changes)},
        },
    )
    return row.to_public()


@router.delete("/{registration_id}", status_code=204)
async def delete_registration(registration_id: str, store: Store) -> Response:
    record_id = parse_record_id(registration_id, "Registration")
    if not await store.delete(record_id):
        raise NotFoundError("Registration not found")
    logger.info(
        "Registration %s deleted",
        record_id,
        extra={"event_type": "registrations.deleted", "ops_payload": {"registration_id": str(record_id)}},
    )
    return Response(status_code=204)
