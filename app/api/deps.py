"""
app/api/deps.py

Purpose: Injectable collaborators for route handlers

Tests override these with in-memory stores and fake gateways via
app.dependency_overrides.
"""

from app.db.identity_store import IdentityStore, MongoIdentityStore
from app.db.verification_store import MongoVerificationStore, VerificationStore
from app.services.whatsapp_service import WhatsAppService, get_whatsapp_service


def get_verification_store() -> VerificationStore:
    return MongoVerificationStore()


def get_identity_store() -> IdentityStore:
    return MongoIdentityStore()


def get_messaging_gateway() -> WhatsAppService:
    return get_whatsapp_service()
