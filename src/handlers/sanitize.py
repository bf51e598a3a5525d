"""Pure input sanitation and validation for public submissions.

Nothing in here raises on malformed input: absence and invalidity come back as
values so the caller can report every problem in a single response.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

DEFAULT_MAX_LENGTH = 1000
MAX_KEY_LENGTH = 100
MAX_DEPTH = 5
EMAIL_MAX_LENGTH = 255

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_MARKUP_RE = re.compile(r"[<>]")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_WHITESPACE_RUN_RE = re.compile(r"\s+")


@dataclass(slots=True)
class RequiredFieldsResult:
    valid: bool
    missing: list[str] = field(default_factory=list)


def sanitize_string(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    if not isinstance(value, str):
        return ""
    cleaned = _CONTROL_CHARS_RE.sub("", value)
    cleaned = _MARKUP_RE.sub("", cleaned)
    cleaned = _JS_PROTOCOL_RE.sub("", cleaned)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    return cleaned.strip()[:max_length]


def sanitize_value(value: Any, depth: int = MAX_DEPTH) -> Any:
    if isinstance(value, str):
        return sanitize_string(value)
    if depth <= 0:
        return None
    if isinstance(value, Mapping):
        return {
            sanitize_string(key, MAX_KEY_LENGTH): sanitize_value(nested, depth - 1)
            for key, nested in value.items()
            if isinstance(key, str)
        }
    if isinstance(value, list | tuple):
        return [sanitize_value(item, depth - 1) for item in value]
    return value


def sanitize_fields(raw: Any) -> dict[str, Any]:
    """Sanitize every string in a submitted field map, recursively."""
    if not isinstance(raw, Mapping):
        return {}
    return sanitize_value(raw, MAX_DEPTH)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def validate_required(data: Mapping[str, Any] | None, fields: Iterable[str]) -> RequiredFieldsResult:
    missing = [name for name in fields if data is None or is_blank(data.get(name))]
    return RequiredFieldsResult(valid=not missing, missing=missing)


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str) or len(value) > EMAIL_MAX_LENGTH:
        return False
    return _EMAIL_RE.fullmatch(value) is not None


def truncate(value: Any, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value[:max_length]


def single_line(value: Any) -> Any:
    """Collapse tabs, newlines and repeated spaces in a one-line field."""
    if not isinstance(value, str):
        return value
    return _WHITESPACE_RUN_RE.sub(" ", value).strip()
