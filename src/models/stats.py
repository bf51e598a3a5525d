from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.registration import RegistrationRead


class CountryCount(BaseModel):
    country: str
    count: int


class PageCount(BaseModel):
    page: str
    count: int


class VisitStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    daily: int
    weekly: int
    monthly: int
    top_countries: list[CountryCount] = Field(default_factory=list)
    top_pages: list[PageCount] = Field(default_factory=list)


class StatsSnapshot(BaseModel):
    """Derived registration statistics. Never persisted, recomputed per request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_registrations: int
    today_registrations: int
    this_week_registrations: int
    this_month_registrations: int
    top_countries: list[CountryCount] = Field(default_factory=list)
    recent_activity: list[RegistrationRead] = Field(default_factory=list)
    visit_stats: VisitStats | None = None

    def to_public(self) -> dict[str, Any]:
        body = self.model_dump(mode="json", by_alias=True, exclude={"visit_stats"})
        if self.visit_stats is not None:
            body["visitStats"] = self.visit_stats.model_dump(mode="json", by_alias=True)
        return body
