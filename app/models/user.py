"""
app/models/user.py

Purpose: User identity model

- Stable uid, one identity per phone number
- Profile fields set on every successful verification
- Tagged lookup result (found / not found / error)
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_ROLE = "user"


def build_display_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}"


@dataclass
class UserIdentity:
    uid: str
    phone_number: str
    first_name: str
    last_name: str
    display_name: str
    created_at: int
    role: str = DEFAULT_ROLE

    def to_document(self) -> Dict[str, Any]:
        doc = asdict(self)
        doc["_id"] = self.uid
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserIdentity":
        return cls(
            uid=doc["uid"],
            phone_number=doc["phone_number"],
            first_name=doc.get("first_name", ""),
            last_name=doc.get("last_name", ""),
            display_name=doc.get("display_name", ""),
            created_at=doc["created_at"],
            role=doc.get("role", DEFAULT_ROLE),
        )


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class IdentityLookup:
    """Outcome of looking an identity up by phone number."""
    status: LookupStatus
    identity: Optional[UserIdentity] = None
    cause: Optional[BaseException] = None

    @classmethod
    def found(cls, identity: UserIdentity) -> "IdentityLookup":
        return cls(LookupStatus.FOUND, identity=identity)

    @classmethod
    def not_found(cls) -> "IdentityLookup":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def error(cls, cause: BaseException) -> "IdentityLookup":
        return cls(LookupStatus.ERROR, cause=cause)
