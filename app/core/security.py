"""
app/core/security.py

Purpose: Secrets and signed credentials

- Verification code and record id generation
- Identity token signing and verification
"""

import secrets
import time
from typing import Any, Dict

import jwt

from app.core.config import settings

CODE_MIN = 100000
CODE_MAX = 999999
TOKEN_ALGORITHM = "HS256"


def _now_s() -> int:
    return int(time.time())


def generate_verification_code() -> str:
    # uniform over 100000-999999, always six digits
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def generate_code_id() -> str:
    """Opaque record handle, 20 url-safe characters."""
    return secrets.token_urlsafe(15)


def codes_match(submitted: str, stored: str) -> bool:
    return secrets.compare_digest(submitted.encode("utf-8"), stored.encode("utf-8"))


def create_identity_token(uid: str, role: str = "user") -> str:
    """
    Signs a token asserting the resolved user id.

    Args:
        uid: Stable identity id
        role: Role claim carried alongside the uid

    Returns:
        Encoded JWT
    """
    now = _now_s()
    payload = {
        "iss": settings.TOKEN_ISSUER,
        "aud": settings.TOKEN_AUDIENCE,
        "iat": now,
        "exp": now + settings.TOKEN_TTL_SECONDS,
        "sub": uid,
        "uid": uid,
        "role": role,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=TOKEN_ALGORITHM)


def decode_identity_token(token: str) -> Dict[str, Any]:
    """
    Verifies signature, issuer, audience and expiry.

    Raises:
        jwt.InvalidTokenError: If the token is not valid
    """
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[TOKEN_ALGORITHM],
        audience=settings.TOKEN_AUDIENCE,
        issuer=settings.TOKEN_ISSUER,
    )
