"""User repository hiding which storage backend is active."""
from __future__ import annotations

from typing import Any, Mapping

from user_api.core.security import PasswordHasher
from user_api.db.base import DEFAULT_SORT
from user_api.db.session import StorageHandle
from user_api.models.user import UserRecord, utcnow


class UserRepository:
    """Single point of access to user records.

    Every call goes through the storage handle so that a connectivity failure
    on the persistent backend downgrades the process to in-memory storage and
    the call is retried once there.
    """

    def __init__(self, storage: StorageHandle) -> None:
        self._storage = storage

    async def create(self, data: Mapping[str, Any]) -> UserRecord:
        """Hash the plaintext password and persist a new record.

        The returned record still carries its hash; stripping secrets is the
        service layer's job.
        """

        fields = dict(data)
        password = fields.pop("password")
        now = utcnow()
        record = UserRecord(
            **fields,
            password_hash=PasswordHasher.hash(password),
            created_at=now,
            updated_at=now,
        )
        return await self._storage.run("create", lambda store: store.insert(record))

    async def find_by_id(self, user_id: str) -> UserRecord | None:
        return await self._storage.run("find_by_id", lambda store: store.get(user_id))

    async def find_by_email(self, email: str, include_secret: bool = False) -> UserRecord | None:
        record = await self._storage.run("find_by_email", lambda store: store.get_by_email(email))
        if record is None or include_secret:
            return record
        return record.without_secret()

    async def find_all(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        page: int = 1,
        limit: int = 10,
        sort: str = DEFAULT_SORT,
    ) -> list[UserRecord]:
        """Return one page of records without password hashes.

        The in-memory backend ignores ``filter`` and ``sort``.
        """

        skip = (page - 1) * limit
        records = await self._storage.run(
            "find_all",
            lambda store: store.find(filter or {}, skip=skip, limit=limit, sort=sort),
        )
        return [record.without_secret() for record in records]

    async def count(self, filter: Mapping[str, Any] | None = None) -> int:
        return await self._storage.run("count", lambda store: store.count(filter or {}))

    async def update(self, user_id: str, patch: Mapping[str, Any]) -> UserRecord | None:
        changes = dict(patch)
        if "password" in changes:
            changes["password_hash"] = PasswordHasher.hash(changes.pop("password"))
        changes["updated_at"] = utcnow()
        return await self._storage.run("update", lambda store: store.update(user_id, changes))

    async def delete(self, user_id: str) -> UserRecord | None:
        return await self._storage.run("delete", lambda store: store.delete(user_id))

    async def verify_password(self, user: UserRecord, candidate: str) -> bool:
        """Check ``candidate`` against the stored hash of ``user``.

        Works for records fetched without their secret by reloading the hash.
        """

        hashed = user.password_hash
        if hashed is None:
            stored = await self.find_by_id(user.id)
            hashed = stored.password_hash if stored else None
        if not hashed:
            return False
        return PasswordHasher.verify(candidate, hashed)
