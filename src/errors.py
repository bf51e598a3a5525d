"""Error taxonomy shared by the intake pipeline, the stores and the HTTP layer.

Every error carries a caller-safe ``message`` and the HTTP status it maps to.
Storage internals never end up in ``message``; the original exception is kept
as ``__cause__`` for the server log only.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> dict[str, object]:
        return {"error": self.message}


class ValidationError(ServiceError):
    status_code = 400
    message = "Invalid request"

    def __init__(self, message: str | None = None, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])

    def to_body(self) -> dict[str, object]:
        body = super().to_body()
        if self.missing:
            body["missing"] = self.missing
        return body


class RateLimitedError(ServiceError):
    status_code = 429
    message = "Too many requests. Please try again later."

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds

    def to_body(self) -> dict[str, object]:
        body = super().to_body()
        body["retryAfter"] = self.retry_after_seconds
        return body


class NotFoundError(ServiceError):
    status_code = 404
    message = "Not found"


class StoreError(ServiceError):
    status_code = 500
    message = "Internal server error"


class SecondaryMetricError(ServiceError):
    status_code = 500
    message = "Secondary metrics unavailable"
