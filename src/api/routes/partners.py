from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response

from src.api.deps import parse_record_id, read_json_body
from src.api.middleware.request_context import request_client_id
from src.db.partners import PartnerStore
from src.db.stores import get_partner_store
from src.errors import NotFoundError, ValidationError
from src.handlers.abuse import RateLimiter, get_rate_limiter
from src.handlers.moderation import partner_changes
from src.models.partner import PartnerStatus
from src.pipeline.intake import submit_partner

logger = logging.getLogger(__name__)

router = APIRouter()

Store = Annotated[PartnerStore, Depends(get_partner_store)]


def _status_filter(value: str | None) -> PartnerStatus | None:
    if value is None or value in ("", "all"):
        return None
    try:
        return PartnerStatus(value)
    except ValueError:
        raise ValidationError(
            "status must be one of: all, " + ", ".join(item.value for item in PartnerStatus)
        ) from None


@router.post("", status_code=201)
async def create_partner(
    request: Request,
    store: Store,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> dict[str, Any]:
    record = await submit_partner(
        await read_json_body(request),
        client_id=request_client_id(request),
        store=store,
        limiter=limiter,
        user_agent=request.headers.get("user-agent"),
    )
    return record.to_public()


@router.get("")
async def list_partners(store: Store, status: str | None = Query(default=None)) -> dict[str, Any]:
    rows = await store.list_all(_status_filter(status))
    return {"partners": [row.to_public() for row in rows]}


@router.get("/{partner_id}")
async def get_partner(partner_id: str, store: Store) -> dict[str, Any]:
    row = await store.get(parse_record_id(partner_id, "Partner"))
    return row.to_public()


@router.patch("/{partner_id}")
async def update_partner(partner_id: str, request: Request, store: Store) -> dict[str, Any]:
    record_id = parse_record_id(partner_id, "Partner")
    changes = partner_changes(await read_json_body(request))
    row = await store.update(record_id, changes)
    logger.info(
        "Partner submission %s updated",
        record_id,
        extra={
            "event_type": "partners.updated",
            "ops_payload": {"partner_id": str(record_id), "fields": sorted(changes)},
        },
    )
    return row.to_public()


@router.delete("/{partner_id}", status_code=204)
async def delete_partner(partner_id: str, store: Store) -> Response:
    record_id = parse_record_id(partner_id, "Partner")
    if not await store.delete(record_id):
        raise NotFoundError("Partner not found")
    logger.info(
        "Partner submission %s deleted",
        record_id,
        extra={"event_type": "partners.deleted", "ops_payload": {"partner_id": str(record_id)}},
    )
    return Response(status_code=204)
