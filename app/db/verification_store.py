"""
app/db/verification_store.py

Purpose: Verification record persistence

- Single atomic write per issued code
- Idempotent delete that reports whether the record existed
- Atomic read-and-delete used as the single-use gate
- Expiry range query and bulk delete for the sweeper
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from app.core.exceptions import StoreError
from app.db.mongo import get_verification_codes_collection
from app.models.verification import VerificationRecord


class VerificationStore(ABC):

    @abstractmethod
    async def create(self, record: VerificationRecord) -> None:
        ...

    @abstractmethod
    async def get(self, code_id: str) -> Optional[VerificationRecord]:
        ...

    @abstractmethod
    async def delete(self, code_id: str) -> bool:
        """Deletes the record; returns False if it was already gone."""

    @abstractmethod
    async def consume(self, code_id: str) -> Optional[VerificationRecord]:
        """Atomically reads and deletes the record; None if another caller got there first."""

    @abstractmethod
    async def find_expired_ids(self, now_ms: int) -> List[str]:
        """Ids of records with expires_at <= now_ms, oldest expiry first."""

    @abstractmethod
    async def delete_many(self, code_ids: Iterable[str]) -> int:
        ...


class MongoVerificationStore(VerificationStore):
    """Verification records in the verification_codes collection."""

    def __init__(self, collection: Optional[AsyncIOMotorCollection] = None):
        self.collection = collection

    def _get_collection(self) -> AsyncIOMotorCollection:
        if self.collection is None:
            self.collection = get_verification_codes_collection()
        return self.collection

    async def create(self, record: VerificationRecord) -> None:
        try:
            await self._get_collection().insert_one(record.to_document())
        except PyMongoError as e:
            raise StoreError("Failed to persist verification record", details=str(e)) from e

    async def get(self, code_id: str) -> Optional[VerificationRecord]:
        try:
            doc = await self._get_collection().find_one({"_id": code_id})
        except PyMongoError as e:
            raise StoreError("Failed to read verification record", details=str(e)) from e
        return VerificationRecord.from_document(doc) if doc else None

    async def delete(self, code_id: str) -> bool:
        try:
            result = await self._get_collection().delete_one({"_id": code_id})
        except PyMongoError as e:
            raise StoreError("Failed to delete verification record", details=str(e)) from e
        return result.deleted_count > 0

    async def consume(self, code_id: str) -> Optional[VerificationRecord]:
        try:
            doc = await self._get_collection().find_one_and_delete({"_id": code_id})
        except PyMongoError as e:
            raise StoreError("Failed to consume verification record", details=str(e)) from e
        return VerificationRecord.from_document(doc) if doc else None

    async def find_expired_ids(self, now_ms: int) -> List[str]:
        try:
            cursor = self._get_collection().find(
                {"expires_at": {"$lte": now_ms}},
                projection={"_id": 1},
            ).sort("expires_at", ASCENDING)
            return [doc["_id"] async for doc in cursor]
        except PyMongoError as e:
            raise StoreError("Failed to query expired verification records", details=str(e)) from e

    async def delete_many(self, code_ids: Iterable[str]) -> int:
        ids = list(code_ids)
        if not ids:
            return 0
        try:
            result = await self._get_collection().delete_many({"_id": {"$in": ids}})
        except PyMongoError as e:
            raise StoreError("Failed to delete verification records", details=str(e)) from e
        return result.deleted_count


class InMemoryVerificationStore(VerificationStore):
    """
    Dict-backed store with the same semantics as the Mongo store.
    Used by tests and by local runs without a database.
    """

    def __init__(self):
        self.records: Dict[str, VerificationRecord] = {}

    async def create(self, record: VerificationRecord) -> None:
        if record.id in self.records:
            raise StoreError("Failed to persist verification record", details=f"duplicate id {record.id}")
        self.records[record.id] = record

    async def get(self, code_id: str) -> Optional[VerificationRecord]:
        return self.records.get(code_id)

    async def delete(self, code_id: str) -> bool:
        return self.records.pop(code_id, None) is not None

    async def consume(self, code_id: str) -> Optional[VerificationRecord]:
        return self.records.pop(code_id, None)

    async def find_expired_ids(self, now_ms: int) -> List[str]:
        expired = [r for r in self.records.values() if r.expires_at <= now_ms]
        return [r.id for r in sorted(expired, key=lambda r: r.expires_at)]

    async def delete_many(self, code_ids: Iterable[str]) -> int:
        deleted = 0
        for code_id in code_ids:
            if self.records.pop(code_id, None) is not None:
                deleted += 1
        return deleted
