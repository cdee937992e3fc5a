"""
app/services/user_service.py

Purpose: Identity resolution after a successful verification

- Existing identity for the phone number -> update name fields
- No identity -> create one with role "user"
- Any other directory failure is fatal for the request
"""

from app.core.exceptions import DuplicateIdentityError, IdentityProviderError
from app.core.logging import get_logger, LogContext
from app.db.identity_store import IdentityStore, generate_uid
from app.models.user import (
    DEFAULT_ROLE,
    IdentityLookup,
    LookupStatus,
    UserIdentity,
    build_display_name,
)
from utils.time_utils import now_ms

logger = get_logger(__name__)


async def _update_existing(
    identity_store: IdentityStore,
    identity: UserIdentity,
    first_name: str,
    last_name: str
) -> UserIdentity:
    display_name = build_display_name(first_name, last_name)
    await identity_store.update_profile(identity.uid, first_name, last_name, display_name)

    identity.first_name = first_name
    identity.last_name = last_name
    identity.display_name = display_name
    logger.info("Existing identity updated")
    return identity


def _raise_lookup_error(lookup: IdentityLookup):
    raise IdentityProviderError(
        "Identity lookup failed",
        details=str(lookup.cause)
    ) from lookup.cause


async def resolve_identity(
    identity_store: IdentityStore,
    phone_number: str,
    first_name: str,
    last_name: str
) -> UserIdentity:
    """
    Finds or creates the identity for a verified phone number.

    Args:
        identity_store: Identity directory
        phone_number: Normalized phone number from the verification record
        first_name: Submitted first name
        last_name: Submitted last name

    Returns:
        The resolved identity, with the submitted names applied

    Raises:
        IdentityProviderError: If the directory fails
    """
    lookup = await identity_store.lookup_by_phone(phone_number)

    if lookup.status == LookupStatus.ERROR:
        _raise_lookup_error(lookup)

    if lookup.status == LookupStatus.FOUND:
        with LogContext(uid=lookup.identity.uid):
            return await _update_existing(identity_store, lookup.identity, first_name, last_name)

    identity = UserIdentity(
        uid=generate_uid(),
        phone_number=phone_number,
        first_name=first_name,
        last_name=last_name,
        display_name=build_display_name(first_name, last_name),
        role=DEFAULT_ROLE,
        created_at=now_ms(),
    )

    try:
        created = await identity_store.create(identity)
    except DuplicateIdentityError:
        # Another verification for the same phone created it first
        logger.info("Identity created concurrently, updating instead")
        lookup = await identity_store.lookup_by_phone(phone_number)
        if lookup.status != LookupStatus.FOUND:
            if lookup.status == LookupStatus.ERROR:
                _raise_lookup_error(lookup)
            raise IdentityProviderError("Identity vanished after duplicate create", details=phone_number)
        with LogContext(uid=lookup.identity.uid):
            return await _update_existing(identity_store, lookup.identity, first_name, last_name)

    with LogContext(uid=created.uid):
        logger.info("New identity created")
    return created
