import pytest
from fastapi.testclient import TestClient

from medilink.core.config import settings as core_settings
from medilink.reminders.dispatcher import get_push_transport
from medilink.reminders.exceptions import FirebaseNotConfiguredError
from medilink.reminders.service import app
from medilink.reminders.store import InMemoryAppointmentStore, get_appointment_store

from conftest import make_record

TEST_URL = "/api/v1/reminders/test"


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def client(store, transport):
    app.dependency_overrides[get_appointment_store] = lambda: store
    app.dependency_overrides[get_push_transport] = lambda: transport
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_probe_not_found(client):
    response = client.get(TEST_URL)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "No appointments with FCM tokens found"}


@pytest.mark.parametrize("method", ["get", "post"])
def test_probe_sends_test_notification(client, store, transport, method):
    store.add(make_record("A", 60))

    response = getattr(client, method)(TEST_URL)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Test notification sent",
        "appointmentId": "A",
        "response": "projects/medilink/messages/1",
    }
    assert transport.tokens == ["token-A"]


def test_probe_transport_failure(client, store, transport):
    store.add(make_record("A", 60))
    transport.failing_tokens.add("token-A")

    response = client.post(TEST_URL)

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["error"] == "Requested entity was not found."


def test_store_configuration_error_is_json(transport):
    def broken_store():
        raise FirebaseNotConfiguredError("Firebase app could not be initialized for Firestore access")

    app.dependency_overrides[get_appointment_store] = broken_store
    app.dependency_overrides[get_push_transport] = lambda: transport
    try:
        response = TestClient(app).get(TEST_URL)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Firebase app could not be initialized for Firestore access",
    }


def test_health(client):
    response = client.get("/api/v1/reminders/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "reminders"}


def test_service_worker_script(client):
    response = client.get("/firebase-messaging-sw.js")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/javascript")
    assert "onBackgroundMessage" in response.text
    assert '"/icons/Icon-192.png"' in response.text


def test_api_key_required_when_enabled(client, store, monkeypatch):
    monkeypatch.setattr(core_settings, "REQUIRE_API_KEY", True)
    monkeypatch.setattr(core_settings, "VALID_API_KEYS", "key-one, key-two")
    store.add(make_record("A", 60))

    assert client.get(TEST_URL).status_code == 401
    assert client.get(TEST_URL, headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get(TEST_URL, headers={"X-API-Key": "key-two"}).status_code == 200
    assert client.get(TEST_URL, headers={"Authorization": "Bearer key-one"}).status_code == 200
    # The service worker must stay reachable by browsers without credentials
    assert client.get("/firebase-messaging-sw.js").status_code == 200


def test_numeric_api_key_is_accepted(client, store, monkeypatch):
    monkeypatch.setattr(core_settings, "REQUIRE_API_KEY", True)
    monkeypatch.setattr(core_settings, "VALID_API_KEYS", "12345")
    store.add(make_record("A", 60))

    assert client.get(TEST_URL, headers={"X-API-Key": "12345"}).status_code == 200
    assert client.get(TEST_URL, headers={"X-API-Key": "1234"}).status_code == 401


def test_app_title_comes_from_settings():
    assert app.title == core_settings.PROJECT_NAME
