"""FastAPI dependencies that hand out the configured store implementations."""

from __future__ import annotations

from functools import lru_cache

from src.config import get_settings
from src.db.connection import get_sessionmaker
from src.db.memory import MemoryPartnerStore, MemoryRegistrationStore, MemoryVisitStore
from src.db.partners import PartnerStore, SqlPartnerStore
from src.db.registrations import RegistrationStore, SqlRegistrationStore
from src.db.visits import SqlVisitStore, VisitStore


def _use_memory() -> bool:
    return get_settings().storage_backend == "memory"


@lru_cache(maxsize=1)
def _memory_registrations() -> MemoryRegistrationStore:
    return MemoryRegistrationStore()


@lru_cache(maxsize=1)
def _memory_partners() -> MemoryPartnerStore:
    return MemoryPartnerStore()


@lru_cache(maxsize=1)
def _memory_visits() -> MemoryVisitStore:
    return MemoryVisitStore()


def get_registration_store() -> RegistrationStore:
    if _use_memory():
        return _memory_registrations()
    return SqlRegistrationStore(get_sessionmaker())


def get_partner_store() -> PartnerStore:
    if _use_memory():
        return _memory_partners()
    return SqlPartnerStore(get_sessionmaker())


def get_visit_store() -> VisitStore:
    if _use_memory():
        return _memory_visits()
    return SqlVisitStore(get_sessionmaker())
