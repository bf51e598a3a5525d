"""Allowlisted edits applied by moderators through PATCH."""

from __future__ import annotations

from typing import Any

from src.errors import ValidationError
from src.handlers.sanitize import is_valid_email, sanitize_fields, sanitize_value, single_line, truncate
from src.models.partner import MUTABLE_PARTNER_FIELDS, PartnerStatus
from src.models.registration import (
    CONTACT_MAX_LENGTH,
    COUNTRY_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    MUTABLE_REGISTRATION_FIELDS,
    NAME_MAX_LENGTH,
    RegistrationStatus,
)

_REGISTRATION_MAX_LENGTHS = {
    "name": NAME_MAX_LENGTH,
    "email": EMAIL_MAX_LENGTH,
    "whatsapp_contact": CONTACT_MAX_LENGTH,
    "country_of_origin": COUNTRY_MAX_LENGTH,
    "country_of_residence": COUNTRY_MAX_LENGTH,
}
_REQUIRED_PARTNER_COLUMNS = {"full_name", "country", "org_name"}


def _checked_email(value: Any) -> str:
    if not is_valid_email(value):
        raise ValidationError("Invalid email address")
    return value.lower()


def registration_changes(raw: Any) -> dict[str, Any]:
    """Map a PATCH body onto registration columns, dropping keys outside the allowlist."""
    fields = sanitize_fields(raw)
    changes: dict[str, Any] = {}
    for public_name, column in MUTABLE_REGISTRATION_FIELDS.items():
        if public_name not in fields:
            continue
        value = fields[public_name]
        if column == "status":
            try:
                changes[column] = RegistrationStatus(value).value
            except ValueError:
                raise ValidationError(
                    "status must be one of: " + ", ".join(item.value for item in RegistrationStatus)
                ) from None
        elif column == "location":
            if value is not None and not isinstance(value, dict):
                raise ValidationError("location must be an object")
            # null clears the bag; records always carry an object.
            changes[column] = value or {}
        elif column == "email":
            changes[column] = _checked_email(value)
        else:
            if not isinstance(value, str) or not value:
                raise ValidationError(f"{public_name} must be a non-empty string")
            changes[column] = truncate(single_line(value), _REGISTRATION_MAX_LENGTHS[column])
    if not changes:
        raise ValidationError("No updatable fields provided")
    return changes


def partner_changes(raw: Any) -> dict[str, Any]:
    fields = sanitize_fields(raw)
    changes: dict[str, Any] = {}
    for public_name, (column, max_length) in MUTABLE_PARTNER_FIELDS.items():
        if public_name not in fields:
            continue
        value = fields[public_name]
        if column in _REQUIRED_PARTNER_COLUMNS:
            value = single_line(value)
        if column == "status":
            try:
                changes[column] = PartnerStatus(value).value
            except ValueError:
                raise ValidationError(
                    "status must be one of: " + ", ".join(item.value for item in PartnerStatus)
                ) from None
        elif column == "partnership_focus":
            if not isinstance(value, list):
                raise ValidationError("partnershipFocus must be a list")
            changes[column] = [item for item in sanitize_value(value) if isinstance(item, str) and item]
        elif column == "email":
            changes[column] = _checked_email(value)
        elif column in _REQUIRED_PARTNER_COLUMNS and (not isinstance(value, str) or not value):
            raise ValidationError(f"{public_name} must be a non-empty string")
        elif value is not None and not isinstance(value, str):
            raise ValidationError(f"{public_name} must be a string")
        elif value is None or max_length is None:
            changes[column] = value
        else:
            changes[column] = truncate(value, max_length)
    if not changes:
        raise ValidationError("No updatable fields provided")
    return changes
