from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from sqlalchemy import func, select

from src.db.store import UNKNOWN_COUNTRY, SqlStore
from src.models.stats import CountryCount, PageCount, VisitStats
from src.models.visit import Visit, VisitCreate, VisitRead

UNKNOWN_PAGE = "unknown"
TOP_LIMIT = 5


class VisitStore(Protocol):
    async def insert(self, data: VisitCreate) -> VisitRead: ...

    async def recent(self, limit: int) -> list[VisitRead]: ...

    async def visit_stats(self, now: datetime) -> VisitStats: ...


class SqlVisitStore(SqlStore):
    component = "visits"

    async def insert(self, data: VisitCreate) -> VisitRead:
        row = Visit(**data.model_dump())
        async with self._session("insert") as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            await session.commit()
            return row.to_schema()

    async def recent(self, limit: int) -> list[VisitRead]:
        async with self._session("recent") as session:
            result = await session.execute(select(Visit).order_by(Visit.created_at.desc()).limit(limit))
            return [row.to_schema() for row in result.scalars().all()]

    async def visit_stats(self, now: datetime) -> VisitStats:
        windows = {
            "daily": now - timedelta(days=1),
            "weekly": now - timedelta(days=7),
            "monthly": now - timedelta(days=30),
        }
        country = func.coalesce(func.nullif(Visit.country, ""), UNKNOWN_COUNTRY)
        page = func.coalesce(func.nullif(Visit.page, ""), UNKNOWN_PAGE)
        async with self._session("visit_stats") as session:
            total = int((await session.execute(select(func.count(Visit.id)))).scalar_one() or 0)
            counts: dict[str, int] = {}
            for name, since in windows.items():
                result = await session.execute(select(func.count(Visit.id)).where(Visit.created_at >= since))
                counts[name] = int(result.scalar_one() or 0)

            countries_result = await session.execute(
                select(country.label("visit_country"), func.count(Visit.id).label("total"))
                .group_by("visit_country")
                .order_by(func.count(Visit.id).desc(), func.min(Visit.created_at).asc())
                .limit(TOP_LIMIT)
            )
            pages_result = await session.execute(
                select(page.label("visit_page"), func.count(Visit.id).label("total"))
                .group_by("visit_page")
                .order_by(func.count(Visit.id).desc(), func.min(Visit.created_at).asc())
                .limit(TOP_LIMIT)
            )
            return VisitStats(
                total=total,
                daily=counts["daily"],
                weekly=counts["weekly"],
                monthly=counts["monthly"],
                top_countries=[
                    CountryCount(country=name, count=int(hits)) for name, hits in countries_result.all()
                ],
                top_pages=[PageCount(page=name, count=int(hits)) for name, hits in pages_result.all()],
            )
