"""MongoDB-backed user storage."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING, IndexModel, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from user_api.core.errors import Conflict, StorageUnavailable
from user_api.models.user import UserRecord

from .base import DEFAULT_SORT, UserStore


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError as exc:
        raise Conflict() from exc
    except ConnectionFailure as exc:
        raise StorageUnavailable(str(exc)) from exc


def _to_document(record: UserRecord) -> dict[str, Any]:
    document = record.model_dump()
    document["_id"] = document.pop("id")
    document["role"] = record.role.value
    return document


def _from_document(document: Mapping[str, Any]) -> UserRecord:
    data = dict(document)
    data["id"] = str(data.pop("_id"))
    return UserRecord.model_validate(data)


def parse_sort(sort: str | None) -> list[tuple[str, int]]:
    """Turn ``"-created_at,name"`` into a pymongo sort specification."""

    order: list[tuple[str, int]] = []
    for field in (sort or DEFAULT_SORT).split(","):
        field = field.strip()
        if not field:
            continue
        if field.startswith("-"):
            order.append((field[1:], DESCENDING))
        else:
            order.append((field.lstrip("+"), ASCENDING))
    return order


class MongoUserStore(UserStore):
    """Store users as documents in a single collection with a unique email index."""

    name = "persistent"

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def ensure_indexes(self) -> None:
        with _translate_errors():
            await self._collection.create_indexes(
                [IndexModel([("email", ASCENDING)], unique=True, name="email_unique")]
            )

    async def insert(self, record: UserRecord) -> UserRecord:
        with _translate_errors():
            await self._collection.insert_one(_to_document(record))
        return record.model_copy()

    async def get(self, user_id: str) -> UserRecord | None:
        with _translate_errors():
            document = await self._collection.find_one({"_id": user_id})
        return _from_document(document) if document else None

    async def get_by_email(self, email: str) -> UserRecord | None:
        with _translate_errors():
            document = await self._collection.find_one({"email": email})
        return _from_document(document) if document else None

    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        skip: int,
        limit: int,
        sort: str | None = None,
    ) -> list[UserRecord]:
        with _translate_errors():
            cursor = self._collection.find(dict(filter)).sort(parse_sort(sort)).skip(skip).limit(limit)
            documents = await cursor.to_list(length=limit)
        return [_from_document(document) for document in documents]

    async def count(self, filter: Mapping[str, Any]) -> int:
        with _translate_errors():
            return await self._collection.count_documents(dict(filter))

    async def update(self, user_id: str, changes: Mapping[str, Any]) -> UserRecord | None:
        fields = {key: getattr(value, "value", value) for key, value in changes.items()}
        with _translate_errors():
            document = await self._collection.find_one_and_update(
                {"_id": user_id},
                {"$set": fields, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
            )
        return _from_document(document) if document else None

    async def delete(self, user_id: str) -> UserRecord | None:
        with _translate_errors():
            document = await self._collection.find_one_and_delete({"_id": user_id})
        return _from_document(document) if document else None
