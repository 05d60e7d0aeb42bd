import yaml
from fastapi.testclient import TestClient

from ward_alert.core.config import get_settings, load_app_config
from ward_alert.main import create_app


def _make_client() -> TestClient:
    return TestClient(create_app())


def test_admin_config_returns_401_without_auth():
    client = _make_client()
    response = client.get("/admin/config")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Basic"


def test_admin_config_rejects_wrong_password():
    client = _make_client()
    response = client.get(
        "/admin/config", headers={"Authorization": "Basic YWRtaW46d3Jvbmc="}
    )
    assert response.status_code == 401


def test_admin_config_defaults_without_file(admin_headers):
    client = _make_client()
    response = client.get("/admin/config", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {
        "alerting": {
            "retry": 3,
            "dedupe_recipients": False,
            "redelivery_minutes": 5,
            "default_source": "sensor",
        }
    }


def test_admin_config_save_updates_values(admin_headers):
    client = _make_client()
    data = {"alerting": {"retry": 5, "redelivery_minutes": 7, "default_source": "monitor"}}
    response = client.post("/admin/config", headers=admin_headers, json=data)
    assert response.status_code == 200
    assert response.json()["saved"] is True

    with open(get_settings().config_path, "r", encoding="utf-8") as handle:
        saved = yaml.safe_load(handle)
    assert saved["alerting"]["retry"] == 5

    load_app_config.cache_clear()
    config = load_app_config().model_dump()
    assert config["alerting"]["redelivery_minutes"] == 7
    assert config["alerting"]["default_source"] == "monitor"
    assert config["alerting"]["dedupe_recipients"] is False


def test_admin_config_save_rejects_invalid_values(admin_headers):
    client = _make_client()
    response = client.post(
        "/admin/config", headers=admin_headers, json={"alerting": {"retry": 0}}
    )
    assert response.status_code == 400
    assert "alerting.retry 1 이상 정수 필요" in response.json()["errors"]
    assert load_app_config().alerting.retry == 3


def test_admin_registration_and_case_rules(admin_headers):
    client = _make_client()
    created = client.post(
        "/admin/patients", headers=admin_headers, json={"patient_id": "P1", "full_name": "Jane Doe"}
    )
    assert created.status_code == 201
    duplicate = client.post(
        "/admin/patients", headers=admin_headers, json={"patient_id": "P1", "full_name": "Jane Doe"}
    )
    assert duplicate.status_code == 409

    missing = client.post(
        "/admin/assignments",
        headers=admin_headers,
        json={"patient_id": "P9", "nurse_id": "N1", "shift": "night"},
    )
    assert missing.status_code == 404

    case = client.post(
        "/admin/cases", headers=admin_headers, json={"patient_id": "P1", "doctor_id": "D1"}
    ).json()
    second = client.post(
        "/admin/cases", headers=admin_headers, json={"patient_id": "P1", "doctor_id": "D2"}
    )
    assert second.status_code == 409

    marked = client.post(
        f"/admin/cases/{case['case_id']}/status",
        headers=admin_headers,
        json={"patient_status": "critical"},
    )
    assert marked.json()["patient_status"] == "critical"
    closed = client.post(f"/admin/cases/{case['case_id']}/close", headers=admin_headers)
    assert closed.json()["status"] == "closed"


def test_admin_logs_and_status_after_critical_reading(admin_headers):
    client = _make_client()
    client.post(
        "/admin/patients", headers=admin_headers, json={"patient_id": "P1", "full_name": "Jane Doe"}
    )
    client.post(
        "/admin/assignments",
        headers=admin_headers,
        json={"patient_id": "P1", "nurse_id": "N1", "shift": "morning"},
    )
    client.post(
        "/v1/vitals/receive",
        json={"patient_id": "P1", "heart_rate": 130, "spo2": 97, "temperature": 37},
    )
    logs = client.get(
        "/admin/logs", headers=admin_headers, params={"event": "critical_detected"}
    ).json()
    assert len(logs) == 1
    assert logs[0]["patient_id"] == "P1"

    status = client.get("/admin/status", headers=admin_headers).json()
    assert status[0]["patient_id"] == "P1"
    assert status[0]["target_count"] == 1

    assert client.post("/admin/redeliver", headers=admin_headers).json() == {"delivered": 0}
