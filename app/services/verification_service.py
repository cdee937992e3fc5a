"""
app/services/verification_service.py

Purpose: Verification code lifecycle

- request_verification: normalize, generate, persist, then attempt delivery
- verify_code: validate record, consume it once, resolve identity, sign token

Steps run strictly in sequence. A record is persisted before delivery is
attempted so the caller always holds a usable code id, and the atomic
consume is the only thing that decides which caller gets to use a code.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from app.core.config import settings
from app.core.exceptions import (
    ClientInputError,
    CodeExpiredError,
    IdentityProviderError,
    IncorrectCodeError,
    NotFoundError,
    StoreError,
    UpstreamDeliveryError,
)
from app.core.logging import get_logger, LogContext
from app.core.security import (
    codes_match,
    create_identity_token,
    generate_code_id,
    generate_verification_code,
)
from app.db.identity_store import IdentityStore
from app.db.verification_store import VerificationStore
from app.models.verification import VerificationRecord
from app.services.user_service import resolve_identity
from utils.phone_utils import has_digits, normalize_phone_number
from utils.time_utils import calculate_code_expiry, now_ms

logger = get_logger(__name__)

ISSUE_FAILED_MESSAGE = "Failed to send verification code"
VERIFY_FAILED_MESSAGE = "Failed to verify code or create user"


class MessagingGateway(Protocol):
    async def send_verification_code(self, to_phone: str, code: str) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class VerificationResult:
    uid: str
    token: str
    first_name: str
    last_name: str


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


async def _deliver_code(gateway: MessagingGateway, phone_number: str, code: str) -> bool:
    """
    Best-effort delivery. Failures are logged and never propagate.
    """
    try:
        result = await gateway.send_verification_code(phone_number, code)
        if not result.get("success"):
            raise UpstreamDeliveryError(details=result.get("error"))
        return True
    except Exception as e:
        # Caller can still verify with the code id through another channel
        logger.error(f"WhatsApp delivery failed for {phone_number}: {e}")
        return False


async def request_verification(
    store: VerificationStore,
    gateway: MessagingGateway,
    phone_number: Optional[str]
) -> str:
    """
    Issues a verification code for a phone number.

    Args:
        store: Verification record store
        gateway: Messaging gateway used to deliver the code
        phone_number: Raw phone number as entered by the user

    Returns:
        The opaque code id. The code itself is never returned.

    Raises:
        ClientInputError: If the phone number is missing
        StoreError: If the record could not be persisted
    """
    if _is_blank(phone_number) or not has_digits(phone_number):
        raise ClientInputError("Phone number is required")

    formatted_phone = normalize_phone_number(phone_number)
    code = generate_verification_code()
    created_at = now_ms()

    record = VerificationRecord(
        id=generate_code_id(),
        phone_number=formatted_phone,
        code=code,
        created_at=created_at,
        expires_at=calculate_code_expiry(created_at, settings.CODE_TTL_MINUTES),
    )

    with LogContext(code_id=record.id):
        try:
            await store.create(record)
        except StoreError as e:
            raise StoreError(ISSUE_FAILED_MESSAGE, details=e.details or e.message) from e

        logger.info(f"Verification record stored for {formatted_phone}")

        delivered = await _deliver_code(gateway, formatted_phone, code)
        if not delivered:
            logger.warning("Verification code issued without delivery")

    return record.id


async def verify_code(
    store: VerificationStore,
    identity_store: IdentityStore,
    code_id: Optional[str],
    code: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str]
) -> VerificationResult:
    """
    Exchanges a correct code for a signed identity token.

    Checks run in order and stop at the first failure:
    missing ids -> missing names -> not found -> expired -> incorrect code.
    An expired record is deleted on detection; an incorrect code leaves the
    record in place so the user can retry until it expires.

    Raises:
        ClientInputError: Missing fields
        NotFoundError: Record never existed, was consumed, or was swept
        CodeExpiredError: Record past its expiry
        IncorrectCodeError: Code does not match
        StoreError / IdentityProviderError: Backend failures
    """
    if _is_blank(code_id) or _is_blank(code):
        raise ClientInputError("Code ID and verification code are required")

    if _is_blank(first_name) or _is_blank(last_name):
        raise ClientInputError("First name and last name are required")

    first_name = first_name.strip()
    last_name = last_name.strip()

    with LogContext(code_id=code_id):
        try:
            record = await store.get(code_id)
            if record is None:
                raise NotFoundError()

            if record.is_expired(now_ms()):
                await store.delete(code_id)
                logger.info("Expired verification code rejected and deleted")
                raise CodeExpiredError()

            if not codes_match(code, record.code):
                logger.info("Incorrect verification code submitted")
                raise IncorrectCodeError()

            # Single-use gate: only one caller can take the record
            consumed = await store.consume(code_id)
            if consumed is None:
                logger.info("Verification record consumed by a concurrent request")
                raise NotFoundError()
        except StoreError as e:
            raise StoreError(VERIFY_FAILED_MESSAGE, details=e.details or e.message) from e

        try:
            identity = await resolve_identity(
                identity_store,
                consumed.phone_number,
                first_name,
                last_name
            )
        except IdentityProviderError as e:
            raise IdentityProviderError(VERIFY_FAILED_MESSAGE, details=e.details or e.message) from e

        token = create_identity_token(identity.uid, identity.role)

        with LogContext(uid=identity.uid):
            logger.info("Phone number verified, identity token issued")

    return VerificationResult(
        uid=identity.uid,
        token=token,
        first_name=first_name,
        last_name=last_name,
    )
