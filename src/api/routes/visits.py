from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from src.api.deps import read_json_body
from src.api.middleware.request_context import request_client_id
from src.config import Settings, get_settings
from src.db.stores import get_visit_store
from src.db.visits import VisitStore
from src.errors import StoreError
from src.handlers.abuse import UNKNOWN_CLIENT
from src.handlers.sanitize import is_blank, sanitize_fields, truncate
from src.models.visit import VisitCreate

logger = logging.getLogger(__name__)

router = APIRouter()

# Public key -> (column, max length).
_VISIT_TEXT_FIELDS = {
    "page": ("page", 200),
    "referrer": ("referrer", 500),
    "userAgent": ("user_agent", 500),
    "country": ("country", 100),
    "city": ("city", 100),
    "region": ("region", 100),
    "timezone": ("timezone", 50),
}


def build_visit(fields: dict[str, Any], *, client_id: str, user_agent: str | None = None) -> VisitCreate:
    values: dict[str, Any] = {}
    for public_name, (column, max_length) in _VISIT_TEXT_FIELDS.items():
        value = fields.get(public_name)
        if isinstance(value, str) and value:
            values[column] = truncate(value, max_length)
    if "user_agent" not in values and not is_blank(user_agent):
        values["user_agent"] = truncate(user_agent, 500)
    location = fields.get("location")
    if isinstance(location, dict):
        values["location"] = location
    if client_id != UNKNOWN_CLIENT:
        values["ip_address"] = truncate(client_id, 45)
    return VisitCreate(**values)


@router.post("", status_code=201, response_model=None)
async def record_visit(
    request: Request,
    store: Annotated[VisitStore, Depends(get_visit_store)],
) -> dict[str, Any] | JSONResponse:
    visit = build_visit(
        sanitize_fields(await read_json_body(request)),
        client_id=request_client_id(request),
        user_agent=request.headers.get("user-agent"),
    )
    try:
        stored = await store.insert(visit)
    except StoreError:
        # Visit logging is non-critical; the page must not see a failure.
        logger.warning(
            "Visit not recorded",
            extra={"event_type": "visits.insert.failed", "ops_payload": {"page": visit.page}},
        )
        return JSONResponse(status_code=200, content={"success": False})
    return {"success": True, "id": str(stored.id)}


@router.get("")
async def list_visits(
    store: Annotated[VisitStore, Depends(get_visit_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    limit: int | None = Query(default=None),
) -> dict[str, Any]:
    requested = settings.visits_default_limit if limit is None else limit
    bounded = min(max(requested, 1), settings.visits_max_limit)
    rows = await store.recent(bounded)
    return {"visits": [row.to_public() for row in rows]}
