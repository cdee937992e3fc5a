import asyncio
from types import SimpleNamespace

import pytest
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ServerSelectionTimeoutError

from app.core.config import settings
from app.core.exceptions import DuplicateIdentityError, IdentityProviderError, StoreError
from app.db import mongo
from app.db.identity_store import MongoIdentityStore
from app.db.verification_store import MongoVerificationStore
from app.models.user import LookupStatus, UserIdentity
from app.models.verification import VerificationRecord

NOW = 1_700_000_000_000


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self.sort_key = None

    def sort(self, key, direction):
        self.sort_key = (key, direction)
        self.docs = sorted(self.docs, key=lambda d: d[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self.docs:
            yield doc


class FakeCollection:
    """Motor collection stand-in that records every call and keeps docs by _id."""

    def __init__(self, unique_field=None, error=None):
        self.docs = {}
        self.calls = []
        self.unique_field = unique_field
        self.error = error

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error

    async def insert_one(self, doc):
        self._record("insert_one", doc)
        clash = self.unique_field and any(
            d[self.unique_field] == doc[self.unique_field] for d in self.docs.values()
        )
        if doc["_id"] in self.docs or clash:
            raise DuplicateKeyError("E11000 duplicate key error", code=11000)
        self.docs[doc["_id"]] = dict(doc)

    async def find_one(self, query):
        self._record("find_one", query)
        for doc in self.docs.values():
            if all(doc.get(k) == v for k, v in query.items()):
                return dict(doc)
        return None

    async def delete_one(self, query):
        self._record("delete_one", query)
        removed = self.docs.pop(query["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)

    async def find_one_and_delete(self, query):
        self._record("find_one_and_delete", query)
        return self.docs.pop(query["_id"], None)

    async def update_one(self, query, update):
        self._record("update_one", query, update)
        doc = self.docs.get(query["_id"])
        if doc is None:
            return SimpleNamespace(matched_count=0)
        doc.update(update["$set"])
        return SimpleNamespace(matched_count=1)

    def find(self, query, projection=None):
        self._record("find", query, projection)
        limit = query["expires_at"]["$lte"]
        return FakeCursor([
            {"_id": d["_id"], "expires_at": d["expires_at"]}
            for d in self.docs.values()
            if d["expires_at"] <= limit
        ])

    async def delete_many(self, query):
        self._record("delete_many", query)
        ids = query["_id"]["$in"]
        deleted = [self.docs.pop(i) for i in ids if i in self.docs]
        return SimpleNamespace(deleted_count=len(deleted))


def _record(code_id, expires_at):
    return VerificationRecord(
        id=code_id,
        phone_number="+14155550123",
        code="123456",
        created_at=expires_at - 300_000,
        expires_at=expires_at,
    )


def _identity(uid="uid-1", phone="+14155550123"):
    return UserIdentity(
        uid=uid,
        phone_number=phone,
        first_name="Ada",
        last_name="Lovelace",
        display_name="Ada Lovelace",
        created_at=NOW,
        role="user",
    )


def test_verification_record_is_stored_under_its_code_id():
    collection = FakeCollection()
    store = MongoVerificationStore(collection)

    asyncio.run(store.create(_record("abc123", NOW)))

    assert collection.docs["abc123"]["expires_at"] == NOW
    assert asyncio.run(store.get("abc123")) == _record("abc123", NOW)
    assert asyncio.run(store.get("missing")) is None


def test_consume_uses_find_one_and_delete_once():
    collection = FakeCollection()
    store = MongoVerificationStore(collection)
    asyncio.run(store.create(_record("abc123", NOW)))

    first = asyncio.run(store.consume("abc123"))
    second = asyncio.run(store.consume("abc123"))

    assert first.id == "abc123"
    assert second is None
    assert [c for c in collection.calls if c[0] == "find_one_and_delete"] == [
        ("find_one_and_delete", {"_id": "abc123"}),
        ("find_one_and_delete", {"_id": "abc123"}),
    ]


def test_delete_reports_whether_record_existed():
    collection = FakeCollection()
    store = MongoVerificationStore(collection)
    asyncio.run(store.create(_record("abc123", NOW)))

    assert asyncio.run(store.delete("abc123")) is True
    assert asyncio.run(store.delete("abc123")) is False


def test_expired_query_is_inclusive_range_sorted_by_expiry():
    collection = FakeCollection()
    store = MongoVerificationStore(collection)
    for code_id, expires_at in [("b", NOW - 10), ("a", NOW - 30), ("edge", NOW), ("live", NOW + 1)]:
        asyncio.run(store.create(_record(code_id, expires_at)))

    ids = asyncio.run(store.find_expired_ids(NOW))

    assert ids == ["a", "b", "edge"]
    assert ("find", {"expires_at": {"$lte": NOW}}, {"_id": 1}) in collection.calls


def test_delete_many_uses_in_query_and_skips_empty_batches():
    collection = FakeCollection()
    store = MongoVerificationStore(collection)
    asyncio.run(store.create(_record("a", NOW)))

    assert asyncio.run(store.delete_many([])) == 0
    assert not [c for c in collection.calls if c[0] == "delete_many"]
    assert asyncio.run(store.delete_many(["a", "gone"])) == 1
    assert collection.calls[-1] == ("delete_many", {"_id": {"$in": ["a", "gone"]}})


def test_driver_errors_become_store_errors():
    store = MongoVerificationStore(FakeCollection(error=ServerSelectionTimeoutError("no primary")))

    with pytest.raises(StoreError) as exc_info:
        asyncio.run(store.consume("abc123"))

    assert exc_info.value.status_code == 500
    assert "no primary" in exc_info.value.details


def test_identity_lookup_found_and_not_found():
    store = MongoIdentityStore(FakeCollection(unique_field="phone_number"))
    asyncio.run(store.create(_identity()))

    found = asyncio.run(store.lookup_by_phone("+14155550123"))
    missing = asyncio.run(store.lookup_by_phone("+14155550999"))

    assert found.status == LookupStatus.FOUND
    assert found.identity.uid == "uid-1"
    assert missing.status == LookupStatus.NOT_FOUND


def test_identity_lookup_failure_is_an_error_result():
    store = MongoIdentityStore(FakeCollection(error=ConnectionFailure("reset by peer")))

    lookup = asyncio.run(store.lookup_by_phone("+14155550123"))

    assert lookup.status == LookupStatus.ERROR
    assert isinstance(lookup.cause, ConnectionFailure)


def test_duplicate_phone_maps_to_duplicate_identity_error():
    store = MongoIdentityStore(FakeCollection(unique_field="phone_number"))
    asyncio.run(store.create(_identity()))

    with pytest.raises(DuplicateIdentityError):
        asyncio.run(store.create(_identity(uid="uid-2")))


def test_update_profile_sets_names_and_requires_a_match():
    collection = FakeCollection(unique_field="phone_number")
    store = MongoIdentityStore(collection)
    asyncio.run(store.create(_identity()))

    asyncio.run(store.update_profile("uid-1", "Ada", "Byron", "Ada Byron"))

    doc = collection.docs["uid-1"]
    assert (doc["last_name"], doc["display_name"]) == ("Byron", "Ada Byron")
    assert "updated_at" in doc
    with pytest.raises(IdentityProviderError):
        asyncio.run(store.update_profile("nobody", "A", "B", "A B"))


class UnreachableClient:
    def __init__(self, clients):
        self.closed = False
        self.admin = SimpleNamespace(command=self._command)
        clients.append(self)

    async def _command(self, name):
        raise ServerSelectionTimeoutError("connection refused")

    def close(self):
        self.closed = True


def test_connect_gives_up_after_configured_attempts(monkeypatch):
    clients = []
    monkeypatch.setattr(settings, "MONGODB_CONNECT_RETRIES", 2)
    monkeypatch.setattr(settings, "MONGODB_RETRY_DELAY_SECONDS", 0)
    monkeypatch.setattr(mongo, "_new_client", lambda: UnreachableClient(clients))

    with pytest.raises(ConnectionError):
        asyncio.run(mongo.connect_to_mongo())

    assert len(clients) == 2
    assert all(client.closed for client in clients)
    assert asyncio.run(mongo.check_database_health()) is False
