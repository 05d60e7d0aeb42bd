from fastapi import APIRouter, Depends, HTTPException, status

from ward_alert.core.config import load_app_config
from ward_alert.core.display import summarize_status
from ward_alert.core.pipeline import receive_vitals
from ward_alert.core.store import WardStore, get_ward_store
from ward_alert.core.thresholds import normal_ranges_payload
from ward_alert.utils.parsing import parse_date, parse_limit

router = APIRouter()


@router.post("/receive", status_code=status.HTTP_201_CREATED)
def receive(payload: dict, store: WardStore = Depends(get_ward_store)) -> dict:
    """센서 또는 간호사 측정값을 수신

    Args:
        payload: 측정값 페이로드
        store: 병동 저장소

    Returns:
        저장된 측정값, 위급 여부, 위반 메시지
    """
    return receive_vitals(store, payload, load_app_config().alerting)


@router.get("/patient/{patient_id}")
def patient_vitals(
    patient_id: str,
    limit: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    store: WardStore = Depends(get_ward_store),
) -> list[dict]:
    """환자 측정값을 최신순으로 조회"""
    return store.list_vitals(
        patient_id,
        limit=parse_limit(limit, 100),
        start=parse_date(start_date, "start_date"),
        end=parse_date(end_date, "end_date"),
    )


@router.get("/patient/{patient_id}/latest")
def latest_vital(patient_id: str, store: WardStore = Depends(get_ward_store)) -> dict:
    """환자 최신 측정값 조회"""
    vital = store.latest_vital(patient_id)
    if vital is None:
        raise HTTPException(status_code=404, detail="No vitals found for this patient")
    return vital


@router.get("/patient/{patient_id}/status")
def vital_status(patient_id: str, store: WardStore = Depends(get_ward_store)) -> dict:
    """최신 측정값의 간호사 대시보드 표시 등급 조회"""
    vital = store.latest_vital(patient_id)
    if vital is None:
        raise HTTPException(status_code=404, detail="No vitals found for this patient")
    return {
        "patient_id": patient_id,
        "updated_at": vital["created_at"],
        "vitals": summarize_status(vital).model_dump(),
    }


@router.get("/critical")
def critical_vitals(
    limit: str | None = None, store: WardStore = Depends(get_ward_store)
) -> list[dict]:
    """위급 측정값 이력 조회"""
    return store.list_critical_vitals(parse_limit(limit, 50))


@router.get("/ranges")
def normal_ranges() -> dict:
    """간호사 대시보드 정상 범위"""
    return normal_ranges_payload()
