from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.connection import Base

NAME_MAX_LENGTH = 200
EMAIL_MAX_LENGTH = 255
CONTACT_MAX_LENGTH = 50
COUNTRY_MAX_LENGTH = 100
USER_AGENT_MAX_LENGTH = 500
IP_ADDRESS_MAX_LENGTH = 45


class GroupType(StrEnum):
    LOCAL = "local"
    DIASPORA = "diaspora"


class RegistrationStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    VERIFIED = "verified"


class Registration(Base):
    __tablename__ = "registrations"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), index=True, nullable=False)
    whatsapp_contact: Mapped[str] = mapped_column(String(CONTACT_MAX_LENGTH), nullable=False)
    country_of_origin: Mapped[str] = mapped_column(String(COUNTRY_MAX_LENGTH), nullable=False)
    country_of_residence: Mapped[str] = mapped_column(String(COUNTRY_MAX_LENGTH), index=True, nullable=False)
    group_type: Mapped[str] = mapped_column(String(16), nullable=False)
    location: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True, default=None)
    ip_address: Mapped[str | None] = mapped_column(String(IP_ADDRESS_MAX_LENGTH), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(USER_AGENT_MAX_LENGTH), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=RegistrationStatus.PENDING.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def to_schema(self) -> RegistrationRead:
        return RegistrationRead.from_orm_model(self)


class RegistrationCreate(BaseModel):
    """A normalized submission, ready to be persisted."""

    name: str = Field(max_length=NAME_MAX_LENGTH)
    email: str = Field(max_length=EMAIL_MAX_LENGTH)
    whatsapp_contact: str = Field(max_length=CONTACT_MAX_LENGTH)
    country_of_origin: str = Field(max_length=COUNTRY_MAX_LENGTH)
    country_of_residence: str = Field(max_length=COUNTRY_MAX_LENGTH)
    group_type: GroupType
    location: dict[str, Any] | None = None
    ip_address: str | None = Field(default=None, max_length=IP_ADDRESS_MAX_LENGTH)
    user_agent: str | None = Field(default=None, max_length=USER_AGENT_MAX_LENGTH)
    status: RegistrationStatus = RegistrationStatus.PENDING


class RegistrationRead(BaseModel):
    """Public shape of a stored registration; serialized with camel-cased keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    name: str
    email: str
    whatsapp_contact: str
    country_of_origin: str
    country_of_residence: str
    group_type: GroupType
    location: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    status: RegistrationStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_orm_model(cls, row: Registration) -> RegistrationRead:
        return cls(
            id=row.id,
            name=row.name,
            email=row.email,
            whatsapp_contact=row.whatsapp_contact,
            country_of_origin=row.country_of_origin,
            country_of_residence=row.country_of_residence,
            group_type=GroupType(row.group_type),
            location=row.location or {},
            ip_address=row.ip_address,
            user_agent=row.user_agent,
            status=RegistrationStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# Public (camelCase) field name -> column name for the moderation PATCH allowlist.
# groupType is fixed at creation and is never patchable.
MUTABLE_REGISTRATION_FIELDS = {
    "name": "name",
    "email": "email",
    "whatsappContact": "whatsapp_contact",
    "countryOfOrigin": "country_of_origin",
    "countryOfResidence": "country_of_residence",
    "location": "location",
    "status": "status",
}
