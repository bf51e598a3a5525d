from src.db.connection import Base, check_db_health, get_db, get_sessionmaker
from src.db.store import UNKNOWN_COUNTRY, SqlStore

__all__ = ["Base", "SqlStore", "UNKNOWN_COUNTRY", "get_sessionmaker", "get_db", "check_db_health"]
