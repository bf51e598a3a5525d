from __future__ import annotations

import asyncio
import os

from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from src.config import get_settings

SCHEMA_TABLES = ("registrations", "partner_submissions", "visits")


def _alembic_config(database_url: str) -> Config:
    cfg = Config("alembic.ini")
    os.environ["DATABASE_URL"] = database_url
    get_settings.cache_clear()
    return cfg


async def _existing_tables(database_url: str) -> set[str]:
    engine = create_async_engine(database_url)
    try:
        async with engine.connect() as conn:
            rows = await conn.execute(
                text(
                    "SELECT table_name FROM information_schema.tables "
                    "WHERE table_schema='public' AND table_name IN "
                    "('registrations','partner_submissions','visits')"
                )
            )
            return {row[0] for row in rows.fetchall()}
    finally:
        await engine.dispose()


async def _created_at_indexes(database_url: str) -> set[str]:
    engine = create_async_engine(database_url)
    try:
        async with engine.connect() as conn:
            rows = await conn.execute(
                text("SELECT indexname FROM pg_indexes WHERE schemaname='public' AND indexname LIKE '%created_at'")
            )
            return {row[0] for row in rows.fetchall()}
    finally:
        await engine.dispose()


def test_migration_upgrade_downgrade_roundtrip(test_database_url: str) -> None:
    cfg = _alembic_config(test_database_url)
    command.downgrade(cfg, "base")
    command.upgrade(cfg, "head")

    assert asyncio.run(_existing_tables(test_database_url)) == set(SCHEMA_TABLES)
    assert asyncio.run(_created_at_indexes(test_database_url)) == {
        "ix_registrations_created_at",
        "ix_partner_submissions_created_at",
        "ix_visits_created_at",
    }

    command.downgrade(cfg, "base")
    assert asyncio.run(_existing_tables(test_database_url)) == set()

    command.upgrade(cfg, "head")
