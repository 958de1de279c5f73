"""Store factory — creates the document store backend named in config."""

from __future__ import annotations

from hearth.config import settings
from hearth.ports.store_port import DocumentStore


def create_store(db_path: str | None = None) -> DocumentStore:
    """Return the store adapter matching the STORE_BACKEND setting.

    Args:
        db_path: Overrides DATABASE_PATH for file-backed stores.
    """
    backend = settings.STORE_BACKEND.lower()

    if backend == "sqlite":
        from hearth.adapters.sqlite_store import SQLiteDocumentStore

        return SQLiteDocumentStore(
            db_path=db_path or settings.DATABASE_PATH,
            timeout=settings.STORE_TIMEOUT_SECONDS,
        )

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")
