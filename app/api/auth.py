"""
app/api/auth.py

Purpose: Phone verification endpoints

- POST /auth/request-verification: issue and send a code
- POST /auth/verify-code: exchange a code for an identity token
- Other methods get 405 from the router
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_identity_store, get_messaging_gateway, get_verification_store
from app.core.logging import get_logger
from app.db.identity_store import IdentityStore
from app.db.verification_store import VerificationStore
from app.schemas.auth import (
    RequestVerificationIn,
    RequestVerificationOut,
    VerifyCodeIn,
    VerifyCodeOut,
)
from app.services.verification_service import MessagingGateway, request_verification, verify_code

logger = get_logger(__name__)
router = APIRouter(prefix="/auth")


@router.post("/request-verification", response_model=RequestVerificationOut, response_model_by_alias=True)
async def request_verification_endpoint(
    payload: RequestVerificationIn,
    store: VerificationStore = Depends(get_verification_store),
    gateway: MessagingGateway = Depends(get_messaging_gateway),
) -> RequestVerificationOut:
    """
    Sends a verification code to the given phone number via WhatsApp.
    """
    code_id = await request_verification(store, gateway, payload.phone_number)
    return RequestVerificationOut(code_id=code_id)


@router.post("/verify-code", response_model=VerifyCodeOut, response_model_by_alias=True)
async def verify_code_endpoint(
    payload: VerifyCodeIn,
    store: VerificationStore = Depends(get_verification_store),
    identity_store: IdentityStore = Depends(get_identity_store),
) -> VerifyCodeOut:
    """
    Verifies a code, creates or updates the user and returns a signed token.
    """
    result = await verify_code(
        store,
        identity_store,
        payload.code_id,
        payload.code,
        payload.first_name,
        payload.last_name,
    )
    return VerifyCodeOut(
        user_id=result.uid,
        custom_token=result.token,
        first_name=result.first_name,
        last_name=result.last_name,
    )
