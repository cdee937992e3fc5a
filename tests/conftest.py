import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_identity_store, get_messaging_gateway, get_verification_store
from app.db.identity_store import InMemoryIdentityStore
from app.db.verification_store import InMemoryVerificationStore
from app.main import app


class RecordingGateway:
    """Messaging gateway double that remembers what it was asked to send."""

    def __init__(self, store=None, fail=False, raise_error=False):
        self.store = store
        self.fail = fail
        self.raise_error = raise_error
        self.sent = []
        self.records_at_send = []

    async def send_verification_code(self, to_phone, code):
        self.sent.append((to_phone, code))
        if self.store is not None:
            self.records_at_send.append(dict(self.store.records))
        if self.raise_error:
            raise RuntimeError("gateway unreachable")
        if self.fail:
            return {"success": False, "error": "WhatsApp API error: 500"}
        return {"success": True, "message_id": "wamid.test"}


@pytest.fixture
def store():
    return InMemoryVerificationStore()


@pytest.fixture
def identity_store():
    return InMemoryIdentityStore()


@pytest.fixture
def gateway_factory():
    return RecordingGateway


@pytest.fixture
def gateway(store):
    return RecordingGateway(store=store)


@pytest.fixture
def client(store, identity_store, gateway):
    app.dependency_overrides[get_verification_store] = lambda: store
    app.dependency_overrides[get_identity_store] = lambda: identity_store
    app.dependency_overrides[get_messaging_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
