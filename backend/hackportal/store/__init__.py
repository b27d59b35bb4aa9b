"""
Catalog + Ledger storage backends, selected by STORE_BACKEND at startup.
"""

from hackportal.core.config import Settings
from hackportal.core.exceptions import ValidationError
from hackportal.store.base import PortalStore, StoreTransaction, bounded
from hackportal.store.records import ProblemStatement, Registration


def create_store(config: Settings) -> PortalStore:
    """Build the configured backend (not yet initialized)"""
    backend = config.STORE_BACKEND.strip().lower()
    if backend == "json":
        from hackportal.store.json_store import JsonFileStore
        return JsonFileStore(config.data_file_path)
    if backend in ("sql", "sqlite", "postgres", "postgresql"):
        from hackportal.store.sql_store import SqlStore
        return SqlStore(config.DATABASE_URL)
    raise ValidationError(f"Unknown STORE_BACKEND '{config.STORE_BACKEND}'", field="STORE_BACKEND")


__all__ = [
    "PortalStore",
    "StoreTransaction",
    "ProblemStatement",
    "Registration",
    "bounded",
    "create_store",
]
