from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.config import Settings, get_settings
from src.handlers.community import community_channel_for

router = APIRouter()


@router.get("/{group_type}")
async def channel(group_type: str, settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, str]:
    resolved = community_channel_for(group_type, settings)
    return {"groupType": resolved.group_type.value, "url": resolved.url}
