from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import Request

from src.errors import NotFoundError

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or ``None`` when the body is empty or not JSON."""
    try:
        return await request.json()
    except ValueError:
        logger.info(
            "Ignoring undecodable request body on %s",
            request.url.path,
            extra={"event_type": "api.request.body_invalid", "ops_payload": {"path": request.url.path}},
        )
        return None


def parse_record_id(value: str, kind: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise NotFoundError(f"{kind} not found") from None
