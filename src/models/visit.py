from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.connection import Base


class Visit(Base):
    __tablename__ = "visits"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    page: Mapped[str | None] = mapped_column(String(200), index=True, nullable=True)
    referrer: Mapped[str | None] = mapped_column(String(500), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    location: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True, default=None)
    country: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    region: Mapped[str | None] = mapped_column(String(100), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True, nullable=False
    )

    def to_schema(self) -> VisitRead:
        return VisitRead.model_validate(self)


class VisitCreate(BaseModel):
    ip_address: str | None = Field(default=None, max_length=45)
    page: str | None = Field(default=None, max_length=200)
    referrer: str | None = Field(default=None, max_length=500)
    user_agent: str | None = Field(default=None, max_length=500)
    location: dict[str, Any] | None = None
    country: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)
    region: str | None = Field(default=None, max_length=100)
    timezone: str | None = Field(default=None, max_length=50)


class VisitRead(VisitCreate):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    created_at: datetime

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
