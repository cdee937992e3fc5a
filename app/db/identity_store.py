"""
app/db/identity_store.py

Purpose: User identity directory

- Lookup by phone number as a tagged result (found / not found / error)
- Create with a unique phone number constraint
- Profile (name) updates; uid and role are never changed here
"""

import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import DuplicateIdentityError, IdentityProviderError
from app.db.mongo import get_users_collection
from app.models.user import IdentityLookup, UserIdentity
from utils.time_utils import now_ms


def generate_uid() -> str:
    return uuid.uuid4().hex


class IdentityStore(ABC):

    @abstractmethod
    async def lookup_by_phone(self, phone_number: str) -> IdentityLookup:
        """Never raises; store failures come back as an ERROR lookup."""

    @abstractmethod
    async def create(self, identity: UserIdentity) -> UserIdentity:
        ...

    @abstractmethod
    async def update_profile(
        self,
        uid: str,
        first_name: str,
        last_name: str,
        display_name: str
    ) -> None:
        ...


class MongoIdentityStore(IdentityStore):
    """Identities in the users collection, keyed by uid."""

    def __init__(self, collection: Optional[AsyncIOMotorCollection] = None):
        self.collection = collection

    def _get_collection(self) -> AsyncIOMotorCollection:
        if self.collection is None:
            self.collection = get_users_collection()
        return self.collection

    async def lookup_by_phone(self, phone_number: str) -> IdentityLookup:
        try:
            doc = await self._get_collection().find_one({"phone_number": phone_number})
        except PyMongoError as e:
            return IdentityLookup.error(e)
        if doc is None:
            return IdentityLookup.not_found()
        return IdentityLookup.found(UserIdentity.from_document(doc))

    async def create(self, identity: UserIdentity) -> UserIdentity:
        try:
            await self._get_collection().insert_one(identity.to_document())
        except DuplicateKeyError as e:
            raise DuplicateIdentityError(details=str(e)) from e
        except PyMongoError as e:
            raise IdentityProviderError("Failed to create identity", details=str(e)) from e
        return identity

    async def update_profile(
        self,
        uid: str,
        first_name: str,
        last_name: str,
        display_name: str
    ) -> None:
        try:
            result = await self._get_collection().update_one(
                {"_id": uid},
                {
                    "$set": {
                        "first_name": first_name,
                        "last_name": last_name,
                        "display_name": display_name,
                        "updated_at": now_ms(),
                    }
                }
            )
        except PyMongoError as e:
            raise IdentityProviderError("Failed to update identity", details=str(e)) from e

        if result.matched_count == 0:
            raise IdentityProviderError("Identity disappeared during update", details=uid)


class InMemoryIdentityStore(IdentityStore):

    def __init__(self):
        self.identities: Dict[str, UserIdentity] = {}

    def _find(self, phone_number: str) -> Optional[UserIdentity]:
        for identity in self.identities.values():
            if identity.phone_number == phone_number:
                return identity
        return None

    async def lookup_by_phone(self, phone_number: str) -> IdentityLookup:
        identity = self._find(phone_number)
        if identity is None:
            return IdentityLookup.not_found()
        return IdentityLookup.found(identity)

    async def create(self, identity: UserIdentity) -> UserIdentity:
        # Check and insert without suspending, like a unique index
        if self._find(identity.phone_number) is not None:
            raise DuplicateIdentityError(details=identity.phone_number)
        self.identities[identity.uid] = identity
        return identity

    async def update_profile(
        self,
        uid: str,
        first_name: str,
        last_name: str,
        display_name: str
    ) -> None:
        identity = self.identities.get(uid)
        if identity is None:
            raise IdentityProviderError("Identity disappeared during update", details=uid)
        identity.first_name = first_name
        identity.last_name = last_name
        identity.display_name = display_name
