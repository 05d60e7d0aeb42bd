import base64
import os

import pytest

os.environ.setdefault("SCHEDULER_ENABLED", "false")

from ward_alert.core.config import get_settings, load_app_config  # noqa: E402
from ward_alert.core.store import get_ward_store  # noqa: E402
from ward_alert.core.telemetry import TelemetryStore  # noqa: E402


def _clear_caches() -> None:
    if get_ward_store.cache_info().currsize:
        get_ward_store().close()
    get_ward_store.cache_clear()
    TelemetryStore.reset()
    get_settings.cache_clear()
    load_app_config.cache_clear()


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    monkeypatch.setenv("DUCKDB_PATH", str(tmp_path / "telemetry.duckdb"))
    monkeypatch.setenv("WARD_DB_PATH", str(tmp_path / "ward.duckdb"))
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "ward.yaml"))
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("PUSH_BASE_URL", "")
    _clear_caches()
    yield tmp_path
    _clear_caches()


@pytest.fixture
def admin_headers() -> dict:
    token = base64.b64encode(b"admin:admin").decode("utf-8")
    return {"Authorization": f"Basic {token}"}
