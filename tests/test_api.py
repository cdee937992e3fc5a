from app.core.exceptions import StoreError
from app.core.security import decode_identity_token
from app.models.verification import VerificationRecord
from utils.time_utils import now_ms

REQUEST_URL = "/api/v1/auth/request-verification"
VERIFY_URL = "/api/v1/auth/verify-code"


def _seed(store, code_id="abc123", code="123456", expires_in_ms=60_000):
    now = now_ms()
    store.records[code_id] = VerificationRecord(
        id=code_id,
        phone_number="+712345678",
        code=code,
        created_at=now,
        expires_at=now + expires_in_ms,
    )


def test_request_verification_returns_code_id(client, store, gateway):
    response = client.post(REQUEST_URL, json={"phoneNumber": "0712345678"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    code_id = data["codeId"]
    assert store.records[code_id].phone_number == "+712345678"
    assert "code" not in data
    assert gateway.sent[0][0] == "+712345678"


def test_request_verification_survives_delivery_failure(client, store, gateway):
    gateway.raise_error = True

    response = client.post(REQUEST_URL, json={"phoneNumber": "+14155550123"})

    assert response.status_code == 200
    assert response.json()["codeId"] in store.records


def test_request_verification_requires_phone(client):
    response = client.post(REQUEST_URL, json={})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Phone number is required",
        "code": "MISSING_FIELDS",
    }


def test_request_verification_store_failure_is_500(client, store):
    async def broken_create(record):
        raise StoreError("Failed to persist verification record", details="not primary")

    store.create = broken_create

    response = client.post(REQUEST_URL, json={"phoneNumber": "+14155550123"})

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Failed to send verification code"
    # development mode exposes diagnostics
    assert data["details"] == "not primary"


def test_verify_code_success(client, store, identity_store):
    _seed(store)

    response = client.post(VERIFY_URL, json={
        "codeId": "abc123",
        "code": "123456",
        "firstName": "Ada",
        "lastName": "Lovelace",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["firstName"] == "Ada"
    assert data["lastName"] == "Lovelace"
    assert decode_identity_token(data["customToken"])["uid"] == data["userId"]
    assert data["userId"] in identity_store.identities
    assert "abc123" not in store.records


def test_verify_code_incorrect(client, store):
    _seed(store)

    response = client.post(VERIFY_URL, json={
        "codeId": "abc123",
        "code": "000000",
        "firstName": "A",
        "lastName": "B",
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Incorrect verification code"
    assert response.json()["success"] is False
    assert "abc123" in store.records


def test_verify_code_expired(client, store):
    _seed(store, expires_in_ms=-1)

    response = client.post(VERIFY_URL, json={
        "codeId": "abc123",
        "code": "123456",
        "firstName": "A",
        "lastName": "B",
    })

    assert response.status_code == 400
    assert response.json()["error"] == "Verification code has expired"
    assert "abc123" not in store.records


def test_verify_code_single_use(client, store):
    _seed(store)
    body = {"codeId": "abc123", "code": "123456", "firstName": "A", "lastName": "B"}

    assert client.post(VERIFY_URL, json=body).status_code == 200
    second = client.post(VERIFY_URL, json=body)

    assert second.status_code == 400
    assert second.json()["error"] == "Verification code not found"


def test_verify_code_missing_fields(client):
    response = client.post(VERIFY_URL, json={"codeId": "abc123"})
    assert response.status_code == 400
    assert response.json()["error"] == "Code ID and verification code are required"

    response = client.post(VERIFY_URL, json={"codeId": "abc123", "code": "123456"})
    assert response.status_code == 400
    assert response.json()["error"] == "First name and last name are required"


def test_full_flow_creates_then_updates_one_identity(client, store, gateway, identity_store):
    uids = []
    for last_name in ("Byron", "Lovelace"):
        code_id = client.post(REQUEST_URL, json={"phoneNumber": "+44 20 7946 0958"}).json()["codeId"]
        _, code = gateway.sent[-1]
        response = client.post(VERIFY_URL, json={
            "codeId": code_id,
            "code": code,
            "firstName": "Ada",
            "lastName": last_name,
        })
        assert response.status_code == 200
        uids.append(response.json()["userId"])

    assert uids[0] == uids[1]
    assert len(identity_store.identities) == 1
    assert identity_store.identities[uids[0]].display_name == "Ada Lovelace"


def test_cors_allows_any_origin(client):
    response = client.options(
        REQUEST_URL,
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "https://app.example.com")
