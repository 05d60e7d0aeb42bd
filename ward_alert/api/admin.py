from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ward_alert.core.auth import require_admin
from ward_alert.core.config import (
    AppConfig,
    get_settings,
    load_app_config,
    reload_app_config,
    save_app_config,
)
from ward_alert.core.fanout import redeliver_pending
from ward_alert.core.scheduler import start_scheduler
from ward_alert.core.store import WardStore, get_ward_store
from ward_alert.core.telemetry import TelemetryStore
from ward_alert.models.ward import AssignmentIn, CaseIn, CaseStatusIn, PatientIn

router = APIRouter(dependencies=[Depends(require_admin)])

_LOG_COLUMNS = (
    "timestamp",
    "level",
    "event",
    "patient_id",
    "stage",
    "error_code",
    "message",
    "duration_ms",
    "record_count",
)
_STATUS_COLUMNS = (
    "patient_id",
    "last_alert_at",
    "last_status",
    "last_error_code",
    "target_count",
    "failed_count",
)


def _validate_alerting(alerting: dict) -> list[str]:
    """알림 설정 유효성 검사

    Args:
        alerting: 알림 설정

    Returns:
        에러 목록
    """
    errors: list[str] = []
    retry = alerting.get("retry")
    if not isinstance(retry, int) or isinstance(retry, bool) or retry < 1:
        errors.append("alerting.retry 1 이상 정수 필요")
    minutes = alerting.get("redelivery_minutes")
    if not isinstance(minutes, int) or isinstance(minutes, bool) or minutes <= 0:
        errors.append("alerting.redelivery_minutes 양수 필요")
    if not isinstance(alerting.get("dedupe_recipients"), bool):
        errors.append("alerting.dedupe_recipients 불리언 필요")
    if not str(alerting.get("default_source", "")).strip():
        errors.append("alerting.default_source 필요")
    return errors


@router.get("/logs")
def admin_logs(event: str | None = None) -> list[dict]:
    """텔레메트리 로그 조회

    Args:
        event: 이벤트 이름 필터(선택)

    Returns:
        로그 목록
    """
    if event:
        rows = TelemetryStore().query_logs("event = ?", [event])
    else:
        rows = TelemetryStore().query_logs("", [])
    return [dict(zip(_LOG_COLUMNS, row)) for row in rows]


@router.get("/status")
def admin_status() -> list[dict]:
    """환자별 마지막 위급 알림 팬아웃 상태 조회"""
    rows = TelemetryStore().query_alert_status()
    return [dict(zip(_STATUS_COLUMNS, row)) for row in rows]


@router.get("/config")
def admin_config() -> dict:
    """현재 알림 설정 조회"""
    return load_app_config().model_dump()


@router.post("/config")
async def save_config(request: Request) -> JSONResponse:
    """알림 설정 저장

    전달된 항목만 현재 설정에 덮어쓴다.

    Args:
        request: FastAPI 요청 객체

    Returns:
        저장된 설정 또는 검증 에러
    """
    config = load_app_config().model_dump()
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict) or not isinstance(body.get("alerting", {}), dict):
        return JSONResponse(status_code=400, content={"saved": False, "errors": ["객체 필요"]})

    alerting = config.get("alerting", {})
    alerting.update(body.get("alerting") or {})
    config["alerting"] = alerting

    errors = _validate_alerting(alerting)
    if errors:
        return JSONResponse(status_code=400, content={"saved": False, "errors": errors})
    try:
        new_config = AppConfig(**config)
    except ValidationError as exc:
        return JSONResponse(
            status_code=400,
            content={"saved": False, "errors": [err["msg"] for err in exc.errors()]},
        )

    save_app_config(new_config)
    reloaded = reload_app_config()
    if get_settings().scheduler_enabled:
        start_scheduler(reloaded)
    return JSONResponse(content={"saved": True, "config": reloaded.model_dump()})


@router.post("/patients", status_code=201)
def add_patient(body: PatientIn, store: WardStore = Depends(get_ward_store)) -> dict:
    """환자 등록"""
    if body.patient_id and store.get_patient(body.patient_id):
        raise HTTPException(status_code=409, detail="Patient already exists")
    return store.add_patient(
        full_name=body.full_name,
        patient_id=body.patient_id,
        national_id=body.national_id,
        room=body.room,
    )


@router.post("/assignments", status_code=201)
def add_assignment(body: AssignmentIn, store: WardStore = Depends(get_ward_store)) -> dict:
    """간호사/의사 배정 등록"""
    if store.get_patient(body.patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return store.add_assignment(
        patient_id=body.patient_id,
        nurse_id=body.nurse_id,
        shift=body.shift,
        doctor_id=body.doctor_id,
    )


@router.post("/assignments/{assignment_id}/deactivate")
def deactivate_assignment(
    assignment_id: str, store: WardStore = Depends(get_ward_store)
) -> dict:
    """배정 비활성화"""
    assignment = store.deactivate_assignment(assignment_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


@router.post("/cases", status_code=201)
def open_case(body: CaseIn, store: WardStore = Depends(get_ward_store)) -> dict:
    """케이스 개시

    환자당 진행 중 케이스는 하나만 허용한다.
    """
    if store.get_patient(body.patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    if store.find_open_case(body.patient_id) is not None:
        raise HTTPException(status_code=409, detail="Patient already has an open case")
    return store.open_case(body.patient_id, body.doctor_id)


@router.post("/cases/{case_id}/close")
def close_case(case_id: str, store: WardStore = Depends(get_ward_store)) -> dict:
    """케이스 종료"""
    case = store.close_case(case_id)
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.post("/cases/{case_id}/status")
def set_case_status(
    case_id: str, body: CaseStatusIn, store: WardStore = Depends(get_ward_store)
) -> dict:
    """의사 지정 환자 상태 변경"""
    case = store.set_patient_status(case_id, body.patient_status)
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.post("/redeliver")
def redeliver(store: WardStore = Depends(get_ward_store)) -> dict:
    """미전송 알림 즉시 재전송"""
    return {"delivered": redeliver_pending(store)}
