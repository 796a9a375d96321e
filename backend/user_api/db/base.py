"""Interface implemented by every user storage backend."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from user_api.models.user import UserRecord

DEFAULT_SORT = "-created_at"


class UserStore(ABC):
    """CRUD primitives over user records.

    Implementations return copies, never references into their own storage.
    ``insert`` and ``update`` raise :class:`~user_api.core.errors.Conflict` when
    the email is already owned by another record, and connectivity problems
    surface as :class:`~user_api.core.errors.StorageUnavailable`.
    """

    name: str = "store"

    @abstractmethod
    async def insert(self, record: UserRecord) -> UserRecord: ...

    @abstractmethod
    async def get(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> UserRecord | None: ...

    @abstractmethod
    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        skip: int,
        limit: int,
        sort: str | None = None,
    ) -> list[UserRecord]: ...

    @abstractmethod
    async def count(self, filter: Mapping[str, Any]) -> int: ...

    @abstractmethod
    async def update(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None: ...

    @abstractmethod
    async def delete(self, user_id: str) -> UserRecord | None: ...
