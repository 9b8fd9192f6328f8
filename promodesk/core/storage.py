"""
Key/value storage backends.

Stores read and write whole collections as raw JSON strings under fixed
keys, the same way the browser build used localStorage. Two backends:

1. DatabaseStorage (SQLAlchemy, one row per key) for normal runs
2. InMemoryStorage for tests and throwaway sessions

Usage:
    storage = create_storage()
    await storage.set(CAMPAIGNS_KEY, "[]")
    raw = await storage.get(CAMPAIGNS_KEY)
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
import asyncio
import logging

from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import async_sessionmaker

from promodesk.config import settings
from promodesk.database import async_session_factory, get_db_session
from promodesk.models.store_entry import StoreEntry

logger = logging.getLogger(__name__)


# Storage keys
CAMPAIGNS_KEY = "campaigns"
TRADE_LETTER_KEY_PREFIX = "campaign_trade_letter_"
SRP_HISTORY_KEY = "srpMasterlistHistory"
USER_ROLE_KEY = "userRole"
NOTIFICATION_FLAG_KEY = "hasNewNotification"

# ON CONFLICT inserts of the supported database dialects
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def trade_letter_key(campaign_id: str) -> str:
    """Storage key of the trade letter attached to a campaign."""
    return f"{TRADE_LETTER_KEY_PREFIX}{campaign_id}"


class StorageBackend(ABC):
    """Abstract key/value storage interface."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get raw value, or None when the key is absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Write raw value, replacing any previous one."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with prefix."""
        pass


class InMemoryStorage(StorageBackend):
    """
    In-memory storage for tests and development.

    Note: contents are lost on restart and not shared between processes.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._data[key] = value

    async def remove(self, key: str) -> bool:
        async with self._lock:
            return self._data.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> List[str]:
        async with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))


class DatabaseStorage(StorageBackend):
    """SQLAlchemy-backed storage: one StoreEntry row per key."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get(self, key: str) -> Optional[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(StoreEntry.value).where(StoreEntry.key == key)
            )
            return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        """Single-statement upsert; concurrent first writes to a key resolve as last-writer-wins."""
        async with get_db_session(self._session_factory) as session:
            insert = _UPSERT_INSERTS[session.bind.dialect.name]
            stmt = insert(StoreEntry).values(key=key, value=value, updated_at=datetime.now(timezone.utc))
            stmt = stmt.on_conflict_do_update(
                index_elements=[StoreEntry.key],
                set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
            )
            await session.execute(stmt)

    async def remove(self, key: str) -> bool:
        async with get_db_session(self._session_factory) as session:
            result = await session.execute(
                delete(StoreEntry).where(StoreEntry.key == key)
            )
            return (result.rowcount or 0) > 0

    async def keys(self, prefix: str = "") -> List[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(StoreEntry.key)
                .where(StoreEntry.key.startswith(prefix, autoescape=True))
                .order_by(StoreEntry.key)
            )
            return list(result.scalars().all())


def create_storage(backend: Optional[str] = None) -> StorageBackend:
    """Build the storage backend selected by STORAGE_BACKEND."""
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.info("Using in-memory storage backend")
        return InMemoryStorage()

    logger.info("Using database storage backend")
    return DatabaseStorage(async_session_factory)
