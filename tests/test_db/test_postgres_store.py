from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.db.partners import SqlPartnerStore
from src.db.registrations import SqlRegistrationStore
from src.db.visits import SqlVisitStore
from src.models.partner import PartnerCreate, PartnerStatus
from src.models.registration import GroupType, Registration, RegistrationCreate, RegistrationStatus
from src.models.visit import VisitCreate
from src.pipeline.stats import compute_stats


def _registration(name: str, country: str) -> RegistrationCreate:
    return RegistrationCreate(
        name=name,
        email=f"{name.lower()}@example.com",
        whatsapp_contact="+1",
        country_of_origin=country or "Unknown",
        country_of_residence=country,
        group_type=GroupType.LOCAL,
        location={"city": "Accra"},
    )


async def test_insert_then_get_roundtrip(db_sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    store = SqlRegistrationStore(db_sessionmaker)
    stored = await store.insert(_registration("Ada", "Ghana"))
    fetched = await store.get(stored.id)
    assert fetched == stored
    assert fetched.location == {"city": "Accra"}
    assert fetched.status is RegistrationStatus.PENDING


async def test_ranking_ties_follow_first_created(db_sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    store = SqlRegistrationStore(db_sessionmaker)
    base = datetime(2026, 1, 1, tzinfo=UTC)
    for offset, country in enumerate(["Kenya", "Ghana", "Ghana", "Kenya", ""]):
        row = await store.insert(_registration(f"R{offset}", country))
        async with db_sessionmaker() as session:
            await session.execute(
                update(Registration)
                .where(Registration.id == row.id)
                .values(created_at=base + timedelta(minutes=offset))
            )
            await session.commit()

    ranked = await store.top_countries(5)
    assert [(item.country, item.count) for item in ranked] == [("Kenya", 2), ("Ghana", 2), ("Unknown", 1)]


async def test_stats_concurrent_reads(db_sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    store = SqlRegistrationStore(db_sessionmaker)
    visits = SqlVisitStore(db_sessionmaker)
    await asyncio.gather(*(store.insert(_registration(f"R{i}", "Ghana")) for i in range(3)))
    await visits.insert(VisitCreate(page="/", country="Ghana"))

    snapshot = await compute_stats(store, visits)
    assert snapshot.total_registrations == 3
    assert snapshot.today_registrations == 3
    assert snapshot.visit_stats is not None
    assert snapshot.visit_stats.top_pages[0].page == "/"


async def test_update_status_and_delete(db_sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    store = SqlRegistrationStore(db_sessionmaker)
    stored = await store.insert(_registration("Ada", "Ghana"))
    updated = await store.update_status(stored.id, RegistrationStatus.ACTIVE)
    assert updated.status is RegistrationStatus.ACTIVE
    assert updated.updated_at >= stored.updated_at
    assert await store.delete(stored.id) is True
    assert await store.delete(stored.id) is False


async def test_partner_filtering(db_sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    store = SqlPartnerStore(db_sessionmaker)
    created = await store.insert(
        PartnerCreate(
            full_name="Kofi",
            email="kofi@example.org",
            country="Ghana",
            org_name="Labs",
            partnership_focus=["Mentoring"],
        )
    )
    await store.update(created.id, {"status": PartnerStatus.APPROVED.value})
    approved = await store.list_all(PartnerStatus.APPROVED)
    assert [row.id for row in approved] == [created.id]
    assert approved[0].partnership_focus == ["Mentoring"]
    assert await store.list_all(PartnerStatus.PENDING) == []
