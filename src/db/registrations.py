from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, select

from src.db.store import UNKNOWN_COUNTRY, SqlStore
from src.errors import NotFoundError
from src.models.registration import (
    Registration,
    RegistrationCreate,
    RegistrationRead,
    RegistrationStatus,
)
from src.models.stats import CountryCount


class RegistrationStore(Protocol):
    async def insert(self, data: RegistrationCreate) -> RegistrationRead: ...

    async def get(self, registration_id: UUID) -> RegistrationRead: ...

    async def list_all(self) -> list[RegistrationRead]: ...

    async def recent(self, limit: int) -> list[RegistrationRead]: ...

    async def count_since(self, since: datetime | None = None) -> int: ...

    async def top_countries(self, limit: int) -> list[CountryCount]: ...

    async def update(self, registration_id: UUID, changes: dict[str, Any]) -> RegistrationRead: ...

    async def update_status(self, registration_id: UUID, status: RegistrationStatus) -> RegistrationRead: ...

    async def delete(self, registration_id: UUID) -> bool: ...


class SqlRegistrationStore(SqlStore):
    component = "registrations"

    async def insert(self, data: RegistrationCreate) -> RegistrationRead:
        row = Registration(
            name=data.name,
            email=data.email,
            whatsapp_contact=data.whatsapp_contact,
            country_of_origin=data.country_of_origin,
            country_of_residence=data.country_of_residence,
            group_type=data.group_type.value,
            location=data.location,
            ip_address=data.ip_address,
            user_agent=data.user_agent,
            status=data.status.value,
        )
        async with self._session("insert") as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            await session.commit()
            return row.to_schema()

    async def get(self, registration_id: UUID) -> RegistrationRead:
        async with self._session("get") as session:
            result = await session.execute(select(Registration).where(Registration.id == registration_id))
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError("Registration not found")
        return row.to_schema()

    async def list_all(self) -> list[RegistrationRead]:
        async with self._session("list_all") as session:
            result = await session.execute(select(Registration).order_by(Registration.created_at.desc()))
            return [row.to_schema() for row in result.scalars().all()]

    async def recent(self, limit: int) -> list[RegistrationRead]:
        async with self._session("recent") as session:
            result = await session.execute(
                select(Registration).order_by(Registration.created_at.desc()).limit(limit)
            )
            return [row.to_schema() for row in result.scalars().all()]

    async def count_since(self, since: datetime | None = None) -> int:
        query = select(func.count(Registration.id))
        if since is not None:
            query = query.where(Registration.created_at >= since)
        async with self._session("count_since") as session:
            result = await session.execute(query)
            return int(result.scalar_one() or 0)

    async def top_countries(self, limit: int) -> list[CountryCount]:
        country = func.coalesce(func.nullif(Registration.country_of_residence, ""), UNKNOWN_COUNTRY)
        # Ties keep first-encountered order: the country whose earliest record came first wins.
        query = (
            select(country.label("country"), func.count(Registration.id).label("total"))
            .group_by("country")
            .order_by(func.count(Registration.id).desc(), func.min(Registration.created_at).asc())
            .limit(limit)
        )
        async with self._session("top_countries") as session:
            result = await session.execute(query)
            return [CountryCount(country=name, count=int(total)) for name, total in result.all()]

    async def update(self, registration_id: UUID, changes: dict[str, Any]) -> RegistrationRead:
        async with self._session("update") as session:
            result = await session.execute(select(Registration).where(Registration.id == registration_id))
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Registration not found")
            for column, value in changes.items():
                setattr(row, column, value)
            await session.flush()
            await session.refresh(row)
            await session.commit()
            return row.to_schema()

    async def update_status(self, registration_id: UUID, status: RegistrationStatus) -> RegistrationRead:
        return await self.update(registration_id, {"status": status.value})

    async def delete(self, registration_id: UUID) -> bool:
        async with self._session("delete") as session:
            result = await session.execute(delete(Registration).where(Registration.id == registration_id))
            await session.commit()
            return bool(result.rowcount)
