from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from src.db.registrations import RegistrationStore
from src.db.visits import VisitStore
from src.errors import SecondaryMetricError
from src.models.stats import StatsSnapshot, VisitStats

logger = logging.getLogger(__name__)

TOP_COUNTRIES_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 10


@dataclass(frozen=True, slots=True)
class StatsWindows:
    now: datetime
    day_start: datetime
    week_start: datetime
    month_start: datetime


def stats_windows(now: datetime) -> StatsWindows:
    return StatsWindows(
        now=now,
        day_start=now - timedelta(hours=24),
        week_start=now - timedelta(days=7),
        month_start=now - timedelta(days=30),
    )


async def fetch_visit_stats(visit_store: VisitStore, now: datetime) -> VisitStats:
    try:
        return await visit_store.visit_stats(now)
    except Exception as exc:
        raise SecondaryMetricError() from exc


async def _optional_visit_stats(visit_store: VisitStore | None, now: datetime) -> VisitStats | None:
    if visit_store is None:
        return None
    try:
        return await fetch_visit_stats(visit_store, now)
    except SecondaryMetricError as exc:
        logger.warning(
            "Visit metrics unavailable, returning registration stats without them (%s)",
            type(exc.__cause__).__name__,
            extra={
                "event_type": "stats.visit_metrics.unavailable",
                "ops_payload": {"cause": type(exc.__cause__).__name__},
            },
        )
        return None


async def compute_stats(
    store: RegistrationStore,
    visit_store: VisitStore | None = None,
    *,
    now: datetime | None = None,
    top_countries_limit: int = TOP_COUNTRIES_LIMIT,
    recent_limit: int = RECENT_ACTIVITY_LIMIT,
) -> StatsSnapshot:
    """Fan out the independent reads, fan in once all of them are done.

    Registration reads must all succeed; a failure there propagates as
    ``StoreError``. The visit metrics branch is best-effort and only ever
    removes ``visit_stats`` from the result.
    """
    windows = stats_windows(now or datetime.now(UTC))

    # Every branch runs to completion; the first primary failure is re-raised.
    *primary, visit_stats = await asyncio.gather(
        store.count_since(None),
        store.count_since(windows.day_start),
        store.count_since(windows.week_start),
        store.count_since(windows.month_start),
        store.recent(recent_limit),
        store.top_countries(top_countries_limit),
        _optional_visit_stats(visit_store, windows.now),
        return_exceptions=True,
    )
    failures = [result for result in primary if isinstance(result, BaseException)]
    if failures:
        raise failures[0]
    if isinstance(visit_stats, BaseException):
        raise visit_stats
    total, daily, weekly, monthly, recent, top_countries = primary

    return StatsSnapshot(
        total_registrations=total,
        today_registrations=daily,
        this_week_registrations=weekly,
        this_month_registrations=monthly,
        top_countries=top_countries,
        recent_activity=recent,
        visit_stats=visit_stats,
    )
