from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, select

from src.db.store import SqlStore
from src.errors import NotFoundError
from src.models.partner import PartnerCreate, PartnerRead, PartnerStatus, PartnerSubmission


class PartnerStore(Protocol):
    async def insert(self, data: PartnerCreate) -> PartnerRead: ...

    async def get(self, partner_id: UUID) -> PartnerRead: ...

    async def list_all(self, status: PartnerStatus | None = None) -> list[PartnerRead]: ...

    async def update(self, partner_id: UUID, changes: dict[str, Any]) -> PartnerRead: ...

    async def delete(self, partner_id: UUID) -> bool: ...


class SqlPartnerStore(SqlStore):
    component = "partners"

    async def insert(self, data: PartnerCreate) -> PartnerRead:
        values = data.model_dump()
        values["status"] = data.status.value
        row = PartnerSubmission(**values)
        async with self._session("insert") as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            await session.commit()
            return row.to_schema()

    async def get(self, partner_id: UUID) -> PartnerRead:
        async with self._session("get") as session:
            result = await session.execute(select(PartnerSubmission).where(PartnerSubmission.id == partner_id))
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError("Partner not found")
        return row.to_schema()

    async def list_all(self, status: PartnerStatus | None = None) -> list[PartnerRead]:
        query = select(PartnerSubmission).order_by(PartnerSubmission.created_at.desc())
        if status is not None:
            query = query.where(PartnerSubmission.status == status.value)
        async with self._session("list_all") as session:
            result = await session.execute(query)
            return [row.to_schema() for row in result.scalars().all()]

    async def update(self, partner_id: UUID, changes: dict[str, Any]) -> PartnerRead:
        async with self._session("update") as session:
            result = await session.execute(select(PartnerSubmission).where(PartnerSubmission.id == partner_id))
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError("Partner not found")
            for column, value in changes.items():
                setattr(row, column, value)
            await session.flush()
            await session.refresh(row)
            await session.commit()
            return row.to_schema()

    async def delete(self, partner_id: UUID) -> bool:
        async with self._session("delete") as session:
            result = await session.execute(delete(PartnerSubmission).where(PartnerSubmission.id == partner_id))
            await session.commit()
            return bool(result.rowcount)
