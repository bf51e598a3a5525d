from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.errors import StoreError

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"


class SqlStore:
    """Base for SQL-backed stores.

    Every operation opens its own session, so independent reads may be awaited
    concurrently without sharing an ``AsyncSession``. Driver and SQL failures
    leave as ``StoreError``; the original exception is chained for the log.
    """

    component = "store"

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.exception(
                "Store operation %s.%s failed",
                self.component,
                operation,
                extra={
                    "event_type": "store.operation.failed",
                    "ops_payload": {"component": self.component, "operation": operation},
                },
            )
            raise StoreError() from exc
