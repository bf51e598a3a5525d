from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.connection import Base


class PartnerStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PartnerSubmission(Base):
    __tablename__ = "partner_submissions"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    linkedin: Mapped[str | None] = mapped_column(String(500), nullable=True)
    org_name: Mapped[str] = mapped_column(String(200), nullable=False)
    org_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    org_website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    org_social_media: Mapped[str | None] = mapped_column(String(500), nullable=True)
    partnership_focus: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    other_focus: Mapped[str | None] = mapped_column(Text, nullable=True)
    about_work: Mapped[str | None] = mapped_column(Text, nullable=True)
    why_partner: Mapped[str | None] = mapped_column(Text, nullable=True)
    how_contribute: Mapped[str | None] = mapped_column(Text, nullable=True)
    what_expect: Mapped[str | None] = mapped_column(Text, nullable=True)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=PartnerStatus.PENDING.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def to_schema(self) -> PartnerRead:
        return PartnerRead.model_validate(self)


class PartnerCreate(BaseModel):
    full_name: str = Field(max_length=200)
    email: str = Field(max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    country: str = Field(max_length=100)
    linkedin: str | None = Field(default=None, max_length=500)
    org_name: str = Field(max_length=200)
    org_type: str | None = Field(default=None, max_length=100)
    role: str | None = Field(default=None, max_length=100)
    org_website: str | None = Field(default=None, max_length=500)
    org_social_media: str | None = Field(default=None, max_length=500)
    partnership_focus: list[str] = Field(default_factory=list)
    other_focus: str | None = None
    about_work: str | None = None
    why_partner: str | None = None
    how_contribute: str | None = None
    what_expect: str | None = None
    additional_notes: str | None = None
    ip_address: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)
    status: PartnerStatus = PartnerStatus.PENDING


class PartnerRead(PartnerCreate):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# Public (camelCase) key -> (column, max length or None when unbounded text).
MUTABLE_PARTNER_FIELDS: dict[str, tuple[str, int | None]] = {
    "fullName": ("full_name", 200),
    "email": ("email", 255),
    "phone": ("phone", 50),
    "country": ("country", 100),
    "linkedin": ("linkedin", 500),
    "orgName": ("org_name", 200),
    "orgType": ("org_type", 100),
    "role": ("role", 100),
    "orgWebsite": ("org_website", 500),
    "orgSocialMedia": ("org_social_media", 500),
    "partnershipFocus": ("partnership_focus", None),
    "otherFocus": ("other_focus", None),
    "aboutWork": ("about_work", None),
    "whyPartner": ("why_partner", None),
    "howContribute": ("how_contribute", None),
    "whatExpect": ("what_expect", None),
    "additionalNotes": ("additional_notes", None),
    "status": ("status", None),
}
