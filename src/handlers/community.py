from __future__ import annotations

from pydantic import BaseModel

from src.config import Settings, get_settings
from src.models.registration import GroupType
from src.pipeline.intake import resolve_group_type


class CommunityChannel(BaseModel):
    group_type: GroupType
    url: str


def community_channel_for(group: str | GroupType, settings: Settings | None = None) -> CommunityChannel:
    """Downstream community channel a cohort is routed to after sign-up."""
    active_settings = settings or get_settings()
    group_type = resolve_group_type(str(group), strict=active_settings.strict_group_type)
    return CommunityChannel(group_type=group_type, url=active_settings.channel_urls()[group_type.value])
