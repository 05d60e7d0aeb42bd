from __future__ import annotations

from datetime import datetime, timezone

from ward_alert.core.config import AlertingConfig
from ward_alert.core.critical import classify
from ward_alert.core.errors import InvalidInput, PatientNotFound
from ward_alert.core.fanout import dispatch_critical_alert
from ward_alert.core.logger import log_event
from ward_alert.core.store import WardStore
from ward_alert.models.vitals import BloodPressure, VitalReading
from ward_alert.utils.parsing import parse_vital, parse_vital_optional


def to_reading(payload: dict) -> VitalReading:
    """수신 페이로드를 측정값 모델로 변환

    Args:
        payload: 센서 또는 간호사 입력 페이로드

    Returns:
        측정값 모델

    Raises:
        InvalidInput: 필수 채널 누락 또는 숫자가 아닐 때
    """
    blood_pressure = None
    raw_bp = payload.get("blood_pressure")
    if raw_bp is not None:
        if not isinstance(raw_bp, dict):
            raise InvalidInput("blood_pressure", "객체가 아님")
        blood_pressure = BloodPressure(
            systolic=parse_vital(raw_bp.get("systolic"), "systolic"),
            diastolic=parse_vital(raw_bp.get("diastolic"), "diastolic"),
        )
    return VitalReading(
        heart_rate=parse_vital(payload.get("heart_rate"), "heart_rate"),
        spo2=parse_vital(payload.get("spo2"), "spo2"),
        temperature=parse_vital(payload.get("temperature"), "temperature"),
        blood_pressure=blood_pressure,
        respiratory_rate=parse_vital_optional(
            payload.get("respiratory_rate"), "respiratory_rate"
        ),
    )


def receive_vitals(
    store: WardStore, payload: dict, alerting: AlertingConfig | None = None
) -> dict:
    """측정값 수신, 위급 판정, 저장, 위급 알림 팬아웃을 실행

    측정값은 팬아웃 전에 저장되므로 알림 실패가 측정 기록에 영향을 주지 않는다.

    Args:
        store: 병동 저장소
        payload: 수신 페이로드(patient_id, heart_rate, spo2, temperature, source)
        alerting: 알림 설정

    Returns:
        저장된 측정값, 위급 여부, 위반 메시지

    Raises:
        InvalidInput: 입력 검증 실패 시
        PatientNotFound: 환자가 없을 때
    """
    start = datetime.now(timezone.utc)
    alerting = alerting or AlertingConfig()
    patient_id = str(payload.get("patient_id") or "").strip()
    try:
        if not patient_id:
            raise InvalidInput("patient_id", "값이 필요함")
        reading = to_reading(payload)
    except InvalidInput as exc:
        log_event(
            "vitals_rejected",
            "WARNING",
            patient_id or "-",
            "validate",
            exc.message,
            error_code=exc.code,
        )
        raise

    patient = store.get_patient(patient_id)
    if patient is None:
        raise PatientNotFound(patient_id)

    verdict = classify(reading)
    source = str(payload.get("source") or alerting.default_source)
    vital = store.insert_vital(
        patient_id=patient_id,
        heart_rate=reading.heart_rate,
        spo2=reading.spo2,
        temperature=reading.temperature,
        source=source,
        is_critical=verdict.is_critical,
        systolic=reading.blood_pressure.systolic if reading.blood_pressure else None,
        diastolic=reading.blood_pressure.diastolic if reading.blood_pressure else None,
        respiratory_rate=reading.respiratory_rate,
    )

    if verdict.is_critical:
        log_event(
            "critical_detected",
            "WARNING",
            patient_id,
            "classify",
            "; ".join(verdict.conditions),
        )
        dispatch_critical_alert(store, patient, vital["vital_id"], verdict, alerting)

    log_event(
        "vitals_received",
        "INFO",
        patient_id,
        "store",
        "측정값 저장",
        record_count=1,
        duration_ms=int((datetime.now(timezone.utc) - start).total_seconds() * 1000),
    )
    return {
        "message": "Vitals recorded",
        "vital": vital,
        "is_critical": verdict.is_critical,
        "critical_conditions": verdict.conditions,
    }
