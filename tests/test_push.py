import httpx

from ward_alert.core import fanout
from ward_alert.core.config import get_settings
from ward_alert.core.fanout import deliver, redeliver_pending
from ward_alert.core.store import WardStore


def _store_with_notification(tmp_path):
    store = WardStore(str(tmp_path / "push.duckdb"))
    notification = store.create_notification(
        user_id="N1",
        type="critical",
        message="CRITICAL: Patient Jane Doe - Low SpO2: 85% (below 90%)",
        related_patient_id="P1",
        related_vital_id="V1",
        role="nurse",
    )
    return store, notification


def _enable_push(monkeypatch):
    monkeypatch.setenv("PUSH_BASE_URL", "http://push.local")
    get_settings.cache_clear()


def test_deliver_is_noop_without_gateway(tmp_path):
    store, notification = _store_with_notification(tmp_path)
    assert deliver(store, notification) is False
    assert len(store.list_undelivered_notifications()) == 1
    store.close()


def test_deliver_marks_notification_delivered(tmp_path, monkeypatch):
    _enable_push(monkeypatch)
    sent = []
    monkeypatch.setattr(fanout, "push_notification", lambda payload: sent.append(payload) or {})
    store, notification = _store_with_notification(tmp_path)
    assert deliver(store, notification) is True
    assert sent[0]["user_id"] == "N1"
    assert store.list_undelivered_notifications() == []
    store.close()


def test_push_failure_keeps_notification_pending(tmp_path, monkeypatch):
    _enable_push(monkeypatch)

    def _fail(payload):
        raise httpx.ConnectError("gateway down")

    monkeypatch.setattr(fanout, "push_notification", _fail)
    store, notification = _store_with_notification(tmp_path)
    assert deliver(store, notification) is False
    assert len(store.list_undelivered_notifications()) == 1
    store.close()


def test_redeliver_pending_pushes_backlog(tmp_path, monkeypatch):
    _enable_push(monkeypatch)
    monkeypatch.setattr(fanout, "push_notification", lambda payload: {})
    store, _ = _store_with_notification(tmp_path)
    assert redeliver_pending(store) == 1
    assert store.list_undelivered_notifications() == []
    store.close()


def test_push_notification_posts_to_gateway(monkeypatch):
    _enable_push(monkeypatch)
    monkeypatch.setenv("PUSH_API_KEY", "secret")
    get_settings.cache_clear()
    captured = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"ok": True})

    transport = httpx.MockTransport(_handler)
    original_client = httpx.Client

    def _client(*args, **kwargs):
        kwargs["transport"] = transport
        return original_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "Client", _client)
    from ward_alert.clients.push_api import push_notification

    assert push_notification({"user_id": "N1", "notification_id": "n1"}) is None
    assert captured["url"] == "http://push.local/notifications"
    assert captured["auth"] == "Bearer secret"


def _gateway_returning(monkeypatch, response: httpx.Response) -> list:
    requests = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return response

    transport = httpx.MockTransport(_handler)
    original_client = httpx.Client

    def _client(*args, **kwargs):
        kwargs["transport"] = transport
        return original_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "Client", _client)
    return requests


def test_gateway_without_body_counts_as_delivered(tmp_path, monkeypatch):
    _enable_push(monkeypatch)
    _gateway_returning(monkeypatch, httpx.Response(204))
    store, notification = _store_with_notification(tmp_path)
    assert deliver(store, notification) is True
    assert store.list_undelivered_notifications() == []
    store.close()


def test_critical_reading_with_empty_gateway_reply_notifies_every_target(
    monkeypatch, admin_headers
):
    from fastapi.testclient import TestClient

    from ward_alert.main import create_app

    _enable_push(monkeypatch)
    requests = _gateway_returning(monkeypatch, httpx.Response(204))
    client = TestClient(create_app())
    client.post(
        "/admin/patients", headers=admin_headers, json={"patient_id": "P1", "full_name": "Jane Doe"}
    )
    client.post(
        "/admin/assignments",
        headers=admin_headers,
        json={"patient_id": "P1", "nurse_id": "N1", "doctor_id": "D1", "shift": "morning"},
    )

    response = client.post(
        "/v1/vitals/receive",
        json={"patient_id": "P1", "heart_rate": 140, "spo2": 95, "temperature": 37},
    )
    assert response.status_code == 201
    nurse = client.get("/v1/notifications/N1").json()
    doctor = client.get("/v1/notifications/D1").json()
    assert len(nurse) == 1
    assert len(doctor) == 1
    assert nurse[0]["delivered"] is True
    assert doctor[0]["delivered"] is True
    assert len(requests) == 2


def test_mark_delivered_failure_does_not_raise(tmp_path, monkeypatch):
    _enable_push(monkeypatch)
    monkeypatch.setattr(fanout, "push_notification", lambda payload: None)
    store, notification = _store_with_notification(tmp_path)
    store.close()
    assert deliver(store, notification) is False
