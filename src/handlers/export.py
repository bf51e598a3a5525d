from __future__ import annotations

import csv
import io
from collections.abc import Callable, Iterable
from typing import Any

from src.models.registration import RegistrationRead


def _location(key: str) -> Callable[[RegistrationRead], Any]:
    return lambda row: row.location.get(key)


def _interests(row: RegistrationRead) -> Any:
    for key in ("areasOfInterest", "interests"):
        value = row.location.get(key)
        if isinstance(value, list):
            return value
    return None


REGISTRATION_CSV_COLUMNS: list[tuple[str, Callable[[RegistrationRead], Any]]] = [
    ("Name", lambda row: row.name),
    ("Email", lambda row: row.email),
    ("WhatsApp", lambda row: row.whatsapp_contact),
    ("Country of Residence", lambda row: row.country_of_residence),
    ("Country of Origin", lambda row: row.country_of_origin),
    ("Group", lambda row: row.group_type.value),
    ("Status", lambda row: row.status.value),
    ("City", _location("city")),
    ("LinkedIn", _location("linkedin")),
    ("Current Work", _location("currentWork")),
    ("Field of Study", _location("fieldOfStudy")),
    ("Background", _location("background")),
    ("Contribution Interest", _location("contributeInterest")),
    ("Areas of Interest", _interests),
    ("Other Interest", _location("otherInterest")),
    ("State/Region", _location("state")),
    ("Age Range", _location("ageRange")),
    ("Expectations", _location("expectations")),
    ("Created At", lambda row: row.created_at.isoformat()),
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(str(item) for item in value)
    return str(value)


def registrations_to_csv(rows: Iterable[RegistrationRead]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in REGISTRATION_CSV_COLUMNS])
    for row in rows:
        writer.writerow([_cell(extract(row)) for _, extract in REGISTRATION_CSV_COLUMNS])
    return buffer.getvalue()
