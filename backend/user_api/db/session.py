"""Storage handle selection and fallback management."""
from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Literal, TypeVar

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from user_api.core.config import Settings
from user_api.core.errors import StorageUnavailable

from .base import UserStore
from .memory import MemoryUserStore
from .mongo import MongoUserStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
StorageMode = Literal["persistent", "transient"]


def mask_url(url: str) -> str:
    """Hide the password component of a connection string."""

    return re.sub(r"(://[^:/@]+):[^@]*@", r"\1:****@", url)


class StorageHandle:
    """Route store calls to the active backend.

    The handle starts in ``persistent`` mode when a persistent store is given.
    Outside strict environments a :class:`StorageUnavailable` error moves it to
    ``transient`` mode for the rest of the process and the failed call is
    retried once against the in-memory store.
    """

    def __init__(
        self,
        persistent: UserStore | None = None,
        transient: UserStore | None = None,
        *,
        strict: bool = False,
        client: AsyncIOMotorClient | None = None,
    ) -> None:
        self.persistent = persistent
        self.transient = transient or MemoryUserStore()
        self.strict = strict
        self.mode: StorageMode = "persistent" if persistent is not None else "transient"
        self.downgrade_reason: str | None = None
        self._client = client

    @property
    def active(self) -> UserStore:
        if self.mode == "persistent" and self.persistent is not None:
            return self.persistent
        return self.transient

    def downgrade(self, reason: str) -> None:
        if self.mode == "transient":
            return
        self.mode = "transient"
        self.downgrade_reason = reason
        logger.warning("Falling back to in-memory user storage: %s", reason)

    async def run(self, operation: str, call: Callable[[UserStore], Awaitable[T]]) -> T:
        store = self.active
        try:
            return await call(store)
        except StorageUnavailable as exc:
            if self.strict or store is self.transient:
                raise
            self.downgrade(f"{operation} failed: {exc.message}")
            return await call(self.transient)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


async def connect_storage(settings: Settings) -> StorageHandle:
    """Build the storage handle for the configured backend.

    In strict environments an unreachable MongoDB aborts startup.
    """

    if settings.skip_mongodb or not settings.mongodb_url:
        logger.info("User repository using in-memory storage")
        return StorageHandle(strict=settings.is_strict)

    logger.info("Connecting to MongoDB at %s", mask_url(settings.mongodb_url))
    client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
    )
    store = MongoUserStore(client[settings.mongodb_database][settings.mongodb_collection])
    try:
        await client.admin.command("ping")
        await store.ensure_indexes()
    except (PyMongoError, StorageUnavailable) as exc:
        client.close()
        if settings.is_strict:
            logger.error("MongoDB connection error: %s", exc)
            raise StorageUnavailable(f"Could not connect to MongoDB: {exc}") from exc
        logger.warning("MongoDB connection error: %s; running without MongoDB", exc)
        handle = StorageHandle(strict=False)
        handle.downgrade_reason = f"connect failed: {exc}"
        return handle

    logger.info("User repository using MongoDB database %s", settings.mongodb_database)
    return StorageHandle(store, strict=settings.is_strict, client=client)
