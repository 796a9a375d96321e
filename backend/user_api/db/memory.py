"""Process-lifetime user storage."""
from __future__ import annotations

from typing import Any, Mapping

from user_api.core.errors import Conflict
from user_api.models.user import UserRecord

from .base import UserStore


class MemoryUserStore(UserStore):
    """Keep user records in a dict, lost on restart.

    ``find`` and ``count`` ignore filters and sorting: records come back in
    insertion order.
    """

    name = "transient"

    def __init__(self) -> None:
        self._records: dict[str, UserRecord] = {}
        self._ids_by_email: dict[str, str] = {}

    async def insert(self, record: UserRecord) -> UserRecord:
        if record.email in self._ids_by_email:
            raise Conflict()
        stored = record.model_copy(deep=True)
        self._records[stored.id] = stored
        self._ids_by_email[stored.email] = stored.id
        return stored.model_copy()

    async def get(self, user_id: str) -> UserRecord | None:
        record = self._records.get(user_id)
        return record.model_copy() if record else None

    async def get_by_email(self, email: str) -> UserRecord | None:
        user_id = self._ids_by_email.get(email)
        if user_id is None:
            return None
        return self._records[user_id].model_copy()

    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        skip: int,
        limit: int,
        sort: str | None = None,
    ) -> list[UserRecord]:
        records = list(self._records.values())[skip : skip + limit]
        return [record.model_copy() for record in records]

    async def count(self, filter: Mapping[str, Any]) -> int:
        return len(self._records)

    async def update(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None:
        current = self._records.get(user_id)
        if current is None:
            return None
        new_email = changes.get("email")
        if new_email is not None and self._ids_by_email.get(new_email, user_id) != user_id:
            raise Conflict()
        updated = current.model_copy(update={**changes, "version": current.version + 1})
        if updated.email != current.email:
            del self._ids_by_email[current.email]
            self._ids_by_email[updated.email] = user_id
        self._records[user_id] = updated
        return updated.model_copy()

    async def delete(self, user_id: str) -> UserRecord | None:
        record = self._records.pop(user_id, None)
        if record is None:
            return None
        self._ids_by_email.pop(record.email, None)
        return record
