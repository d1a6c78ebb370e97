import pytest
from fastapi.testclient import TestClient

from app.main import app

WEBHOOK_URL = "/api/v1/webhook"


class RecordingEngine:
    def __init__(self, reply="🏠 menu"):
        self.reply = reply
        self.calls = []

    async def handle_message(self, sender, body, message_id=None, profile_name=None):
        self.calls.append((sender, body, message_id, profile_name))
        return self.reply


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def recording_engine(client):
    engine = RecordingEngine()
    app.state.engine = engine
    return engine


def test_webhook_answers_with_empty_twiml(client, recording_engine):
    response = client.post(WEBHOOK_URL, data={
        "From": "whatsapp:+256772123456",
        "Body": "hi",
        "ProfileName": "Jane",
        "MessageSid": "SM0001",
    })

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "<Response></Response>" in response.text
    assert recording_engine.calls == [("whatsapp:+256772123456", "hi", "SM0001", "Jane")]


def test_redelivered_message_is_processed_once(client, recording_engine):
    payload = {"From": "whatsapp:+256772123456", "Body": "1", "MessageSid": "SM0002"}

    client.post(WEBHOOK_URL, data=payload)
    client.post(WEBHOOK_URL, data=payload)

    assert len(recording_engine.calls) == 1


def test_repeated_text_with_new_message_ids_is_processed(client, recording_engine):
    client.post(WEBHOOK_URL, data={"From": "whatsapp:+256772123456", "Body": "1", "MessageSid": "SM0003"})
    client.post(WEBHOOK_URL, data={"From": "whatsapp:+256772123456", "Body": "1", "MessageSid": "SM0004"})

    assert len(recording_engine.calls) == 2


def test_repeated_text_without_message_id_is_suppressed(client, recording_engine):
    client.post(WEBHOOK_URL, data={"From": "whatsapp:+256772123456", "Body": "balance"})
    client.post(WEBHOOK_URL, data={"From": "whatsapp:+256772123456", "Body": "balance"})

    assert len(recording_engine.calls) == 1


def test_missing_sender_is_rejected(client, recording_engine):
    response = client.post(WEBHOOK_URL, data={"Body": "hi"})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert recording_engine.calls == []


def test_engine_runs_end_to_end(client):
    response = client.post(WEBHOOK_URL, data={"From": "whatsapp:+256772000001", "Body": "menu", "MessageSid": "SM0005"})

    assert response.status_code == 200
    assert "<Response></Response>" in response.text


def test_webhook_get(client):
    response = client.get(WEBHOOK_URL)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_endpoints(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["checks"]["database"] == "healthy"

    assert client.get("/live").json() == {"status": "alive"}
    assert client.get("/ready").json() == {"status": "ready"}
