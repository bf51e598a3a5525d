"""Write path for public sign-ups.

received -> sanitized -> rate_checked -> validated -> normalized -> persisted -> responded,
with a rejection possible after every stage past ``received``. The rate check
runs before any field validation so throttled clients cost nothing more.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from src.config import Settings, get_settings
from src.db.partners import PartnerStore
from src.db.registrations import RegistrationStore
from src.errors import RateLimitedError, ServiceError, StoreError, ValidationError
from src.handlers.abuse import UNKNOWN_CLIENT, RateLimiter
from src.handlers.sanitize import (
    is_blank,
    is_valid_email,
    sanitize_fields,
    single_line,
    truncate,
    validate_required,
)
from src.models.partner import PartnerCreate, PartnerRead, PartnerStatus
from src.models.registration import (
    CONTACT_MAX_LENGTH,
    COUNTRY_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    IP_ADDRESS_MAX_LENGTH,
    NAME_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
    GroupType,
    RegistrationCreate,
    RegistrationRead,
    RegistrationStatus,
)

logger = logging.getLogger(__name__)

REQUIRED_REGISTRATION_FIELDS = ("name", "email", "whatsappContact", "countryOfResidence")
LEGACY_FIELD_ALIASES = {"whatsapp": "whatsappContact", "group": "groupType"}


class IntakeStage(StrEnum):
    SANITIZED = "sanitized"
    RATE_CHECKED = "rate_checked"
    VALIDATED = "validated"
    NORMALIZED = "normalized"
    PERSISTED = "persisted"


def _rejected(stage: IntakeStage, error: ServiceError, kind: str = "registration") -> ServiceError:
    logger.info(
        "%s rejected after %s: %s",
        kind.capitalize(),
        stage.value,
        error.message,
        extra={
            "event_type": "intake.rejected",
            "ops_payload": {"kind": kind, "stage": stage.value, "status_code": error.status_code},
        },
    )
    return error


def apply_legacy_aliases(fields: dict[str, Any]) -> dict[str, Any]:
    resolved = dict(fields)
    for legacy, canonical in LEGACY_FIELD_ALIASES.items():
        if is_blank(resolved.get(canonical)) and not is_blank(resolved.get(legacy)):
            resolved[canonical] = resolved[legacy]
        resolved.pop(legacy, None)
    return resolved


def resolve_group_type(value: Any, *, strict: bool = False) -> GroupType:
    if isinstance(value, str):
        candidate = value.strip().lower()
        if candidate in (GroupType.LOCAL.value, GroupType.DIASPORA.value):
            return GroupType(candidate)
    if strict:
        raise ValidationError("groupType must be 'local' or 'diaspora'")
    return GroupType.DIASPORA


def normalize_registration(
    fields: dict[str, Any],
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
    strict_group_type: bool = False,
) -> RegistrationCreate:
    residence = truncate(single_line(fields["countryOfResidence"]), COUNTRY_MAX_LENGTH) or ""
    origin = single_line(fields.get("countryOfOrigin"))
    location = fields.get("location")
    observed_ip = ip_address if ip_address and ip_address != UNKNOWN_CLIENT else fields.get("ipAddress")
    agent = fields.get("userAgent") if not is_blank(fields.get("userAgent")) else user_agent

    return RegistrationCreate(
        name=truncate(single_line(fields["name"]), NAME_MAX_LENGTH) or "",
        email=(truncate(fields["email"], EMAIL_MAX_LENGTH) or "").lower(),
        whatsapp_contact=truncate(single_line(fields["whatsappContact"]), CONTACT_MAX_LENGTH) or "",
        country_of_origin=residence if is_blank(origin) else truncate(origin, COUNTRY_MAX_LENGTH) or residence,
        country_of_residence=residence,
        group_type=resolve_group_type(fields.get("groupType"), strict=strict_group_type),
        location=location if isinstance(location, dict) else None,
        ip_address=truncate(observed_ip, IP_ADDRESS_MAX_LENGTH) if not is_blank(observed_ip) else None,
        user_agent=truncate(agent, USER_AGENT_MAX_LENGTH) if not is_blank(agent) else None,
        status=RegistrationStatus.PENDING,
    )


async def submit_registration(
    raw: Any,
    *,
    client_id: str,
    store: RegistrationStore,
    limiter: RateLimiter,
    user_agent: str | None = None,
    settings: Settings | None = None,
) -> RegistrationRead:
    """Run one submission through the intake state machine and return the stored record."""
    active_settings = settings or get_settings()

    fields = apply_legacy_aliases(sanitize_fields(raw))
    stage = IntakeStage.SANITIZED

    decision = limiter.allow(client_id)
    if not decision.allowed:
        raise _rejected(stage, RateLimitedError(retry_after_seconds=decision.retry_after_seconds))
    stage = IntakeStage.RATE_CHECKED

    required = validate_required(fields, REQUIRED_REGISTRATION_FIELDS)
    if not required.valid:
        raise _rejected(stage, ValidationError("Missing required fields", missing=required.missing))
    if not is_valid_email(fields["email"]):
        raise _rejected(stage, ValidationError("Invalid email address"))
    stage = IntakeStage.VALIDATED

    try:
        record = normalize_registration(
            fields,
            ip_address=client_id,
            user_agent=user_agent,
            strict_group_type=active_settings.strict_group_type,
        )
    except ValidationError as exc:
        raise _rejected(stage, exc) from None
    stage = IntakeStage.NORMALIZED

    try:
        stored = await store.insert(record)
    except StoreError as exc:
        _rejected(stage, exc)
        raise
    logger.info(
        "Registration %s created (%s)",
        stored.id,
        stored.group_type.value,
        extra={
            "event_type": "intake.persisted",
            "ops_payload": {
                "stage": IntakeStage.PERSISTED.value,
                "registration_id": str(stored.id),
                "group_type": stored.group_type.value,
            },
        },
    )
    return stored


REQUIRED_PARTNER_FIELDS = ("fullName", "email", "country", "orgName")
_PARTNER_TEXT_FIELDS = {
    "phone": ("phone", CONTACT_MAX_LENGTH),
    "linkedin": ("linkedin", 500),
    "orgType": ("org_type", 100),
    "role": ("role", 100),
    "orgWebsite": ("org_website", 500),
    "orgSocialMedia": ("org_social_media", 500),
    "otherFocus": ("other_focus", None),
    "aboutWork": ("about_work", None),
    "whyPartner": ("why_partner", None),
    "howContribute": ("how_contribute", None),
    "whatExpect": ("what_expect", None),
    "additionalNotes": ("additional_notes", None),
}


def normalize_partner(
    fields: dict[str, Any],
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> PartnerCreate:
    optional: dict[str, Any] = {}
    for public_name, (column, max_length) in _PARTNER_TEXT_FIELDS.items():
        value = fields.get(public_name)
        if isinstance(value, str) and value:
            optional[column] = value if max_length is None else truncate(value, max_length)
    focus = fields.get("partnershipFocus")
    observed_ip = ip_address if ip_address and ip_address != UNKNOWN_CLIENT else fields.get("ipAddress")
    agent = fields.get("userAgent") if not is_blank(fields.get("userAgent")) else user_agent

    return PartnerCreate(
        full_name=truncate(single_line(fields["fullName"]), NAME_MAX_LENGTH) or "",
        email=(truncate(fields["email"], EMAIL_MAX_LENGTH) or "").lower(),
        country=truncate(single_line(fields["country"]), COUNTRY_MAX_LENGTH) or "",
        org_name=truncate(single_line(fields["orgName"]), NAME_MAX_LENGTH) or "",
        partnership_focus=[item for item in focus if isinstance(item, str) and item]
        if isinstance(focus, list)
        else [],
        ip_address=truncate(observed_ip, IP_ADDRESS_MAX_LENGTH) if not is_blank(observed_ip) else None,
        user_agent=truncate(agent, USER_AGENT_MAX_LENGTH) if not is_blank(agent) else None,
        status=PartnerStatus.PENDING,
        **optional,
    )


async def submit_partner(
    raw: Any,
    *,
    client_id: str,
    store: PartnerStore,
    limiter: RateLimiter,
    user_agent: str | None = None,
) -> PartnerRead:
    """Partner applications go through the same stages as registrations."""
    fields = sanitize_fields(raw)
    stage = IntakeStage.SANITIZED

    decision = limiter.allow(client_id)
    if not decision.allowed:
        raise _rejected(stage, RateLimitedError(retry_after_seconds=decision.retry_after_seconds), "partner")
    stage = IntakeStage.RATE_CHECKED

    required = validate_required(fields, REQUIRED_PARTNER_FIELDS)
    if not required.valid:
        raise _rejected(stage, ValidationError("Missing required fields", missing=required.missing), "partner")
    if not is_valid_email(fields["email"]):
        raise _rejected(stage, ValidationError("Invalid email address"), "partner")
    stage = IntakeStage.VALIDATED

    record = normalize_partner(fields, ip_address=client_id, user_agent=user_agent)
    stage = IntakeStage.NORMALIZED

    try:
        stored = await store.insert(record)
    except StoreError as exc:
        _rejected(stage, exc, "partner")
        raise
    logger.info(
        "Partner submission %s created",
        stored.id,
        extra={
            "event_type": "intake.partner.persisted",
            "ops_payload": {"stage": IntakeStage.PERSISTED.value, "partner_id": str(stored.id)},
        },
    )
    return stored
