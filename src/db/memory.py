"""Process-local implementations of the store protocols.

Used for local development (``STORAGE_BACKEND=memory``) and in tests. Records
live in insertion order, which is also creation order, so "first encountered"
is well defined for ranking ties.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from src.db.store import UNKNOWN_COUNTRY
from src.db.visits import TOP_LIMIT, UNKNOWN_PAGE
from src.errors import NotFoundError
from src.models.partner import PartnerCreate, PartnerRead, PartnerStatus
from src.models.registration import RegistrationCreate, RegistrationRead, RegistrationStatus
from src.models.stats import CountryCount, PageCount, VisitStats
from src.models.visit import VisitCreate, VisitRead


def utc_now() -> datetime:
    return datetime.now(UTC)


def rank_counts(values: Iterable[str | None], limit: int, default: str) -> list[tuple[str, int]]:
    """Frequency ranking, descending by count, ties in first-encountered order."""
    counter: Counter[str] = Counter(value or default for value in values)
    # most_common sorts stably, so equal counts keep insertion order.
    return counter.most_common(limit)


class _MonotonicClock:
    def __init__(self, clock: Callable[[], datetime]) -> None:
        self._clock = clock
        self._last: datetime | None = None

    def __call__(self) -> datetime:
        now = self._clock()
        if self._last is not None and now < self._last:
            now = self._last
        self._last = now
        return now


class MemoryRegistrationStore:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = _MonotonicClock(clock)
        self._rows: dict[UUID, RegistrationRead] = {}

    async def insert(self, data: RegistrationCreate) -> RegistrationRead:
        now = self._clock()
        row = RegistrationRead(
            id=uuid4(),
            created_at=now,
            updated_at=now,
            **data.model_dump(exclude={"location"}),
            location=data.location or {},
        )
        self._rows[row.id] = row
        return row

    async def get(self, registration_id: UUID) -> RegistrationRead:
        row = self._rows.get(registration_id)
        if row is None:
            raise NotFoundError("Registration not found")
        return row

    async def list_all(self) -> list[RegistrationRead]:
        return list(reversed(self._rows.values()))

    async def recent(self, limit: int) -> list[RegistrationRead]:
        return (await self.list_all())[:limit]

    async def count_since(self, since: datetime | None = None) -> int:
        if since is None:
            return len(self._rows)
        return sum(1 for row in self._rows.values() if row.created_at >= since)

    async def top_countries(self, limit: int) -> list[CountryCount]:
        ranked = rank_counts((row.country_of_residence for row in self._rows.values()), limit, UNKNOWN_COUNTRY)
        return [CountryCount(country=country, count=count) for country, count in ranked]

    async def update(self, registration_id: UUID, changes: dict[str, Any]) -> RegistrationRead:
        current = await self.get(registration_id)
        if "location" in changes:
            changes = {**changes, "location": changes["location"] or {}}
        updated = RegistrationRead.model_validate(
            {**current.model_dump(), **changes, "updated_at": self._clock()}
        )
        self._rows[registration_id] = updated
        return updated

    async def update_status(self, registration_id: UUID, status: RegistrationStatus) -> RegistrationRead:
        return await self.update(registration_id, {"status": status})

    async def delete(self, registration_id: UUID) -> bool:
        return self._rows.pop(registration_id, None) is not None


class MemoryPartnerStore:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = _MonotonicClock(clock)
        self._rows: dict[UUID, PartnerRead] = {}

    async def insert(self, data: PartnerCreate) -> PartnerRead:
        now = self._clock()
        row = PartnerRead(id=uuid4(), created_at=now, updated_at=now, **data.model_dump())
        self._rows[row.id] = row
        return row

    async def get(self, partner_id: UUID) -> PartnerRead:
        row = self._rows.get(partner_id)
        if row is None:
            raise NotFoundError("Partner not found")
        return row

    async def list_all(self, status: PartnerStatus | None = None) -> list[PartnerRead]:
        rows = reversed(self._rows.values())
        return [row for row in rows if status is None or row.status == status]

    async def update(self, partner_id: UUID, changes: dict[str, Any]) -> PartnerRead:
        current = await self.get(partner_id)
        updated = PartnerRead.model_validate(
            {**current.model_dump(), **changes, "updated_at": self._clock()}
        )
        self._rows[partner_id] = updated
        return updated

    async def delete(self, partner_id: UUID) -> bool:
        return self._rows.pop(partner_id, None) is not None


class MemoryVisitStore:
    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = _MonotonicClock(clock)
        self._rows: list[VisitRead] = []

    async def insert(self, data: VisitCreate) -> VisitRead:
        row = VisitRead(id=uuid4(), created_at=self._clock(), **data.model_dump())
        self._rows.append(row)
        return row

    async def recent(self, limit: int) -> list[VisitRead]:
        return list(reversed(self._rows))[:limit]

    async def visit_stats(self, now: datetime) -> VisitStats:
        def since(delta: timedelta) -> int:
            return sum(1 for row in self._rows if row.created_at >= now - delta)

        countries = rank_counts((row.country for row in self._rows), TOP_LIMIT, UNKNOWN_COUNTRY)
        pages = rank_counts((row.page for row in self._rows), TOP_LIMIT, UNKNOWN_PAGE)
        return VisitStats(
            total=len(self._rows),
            daily=since(timedelta(days=1)),
            weekly=since(timedelta(days=7)),
            monthly=since(timedelta(days=30)),
            top_countries=[CountryCount(country=name, count=count) for name, count in countries],
            top_pages=[PageCount(page=name, count=count) for name, count in pages],
        )
