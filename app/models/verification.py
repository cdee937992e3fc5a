"""
app/models/verification.py

Purpose: Verification record model

- One record per issued code, keyed by an opaque id
- Millisecond timestamps; never updated in place
- Mongo document mapping (verification_codes collection)
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class VerificationRecord:
    id: str
    phone_number: str
    code: str
    created_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at < now_ms

    def to_document(self) -> Dict[str, Any]:
        doc = asdict(self)
        doc["_id"] = doc.pop("id")
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "VerificationRecord":
        return cls(
            id=doc["_id"],
            phone_number=doc["phone_number"],
            code=doc["code"],
            created_at=doc["created_at"],
            expires_at=doc["expires_at"],
        )
