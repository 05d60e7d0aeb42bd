from __future__ import annotations

import httpx

from ward_alert.clients.push_api import push_enabled, push_notification
from ward_alert.core.config import AlertingConfig
from ward_alert.core.errors import LookupFailure, NotificationWriteFailure
from ward_alert.core.logger import log_event
from ward_alert.core.store import AlertStore, WardStore
from ward_alert.core.telemetry import TelemetryStore
from ward_alert.models.vitals import SeverityVerdict
from ward_alert.models.ward import AlertTarget, FanoutResult
from ward_alert.utils.parsing import utc_now

NOTIFICATION_TYPE = "critical"


def build_alert_message(full_name: str, conditions: list[str]) -> str:
    """모든 수신자가 공유하는 위급 알림 메시지를 구성

    Args:
        full_name: 환자 이름
        conditions: 위반 채널 메시지 목록

    Returns:
        알림 메시지
    """
    return f"CRITICAL: Patient {full_name} - {'; '.join(conditions)}"


def _dedupe(targets: list[AlertTarget]) -> list[AlertTarget]:
    seen: set[tuple[str, str]] = set()
    unique: list[AlertTarget] = []
    for target in targets:
        key = (target.user_id, target.role)
        if key in seen:
            continue
        seen.add(key)
        unique.append(target)
    return unique


def resolve_recipients(
    store: AlertStore, patient_id: str, dedupe: bool = False
) -> tuple[list[AlertTarget], list[LookupFailure]]:
    """위급 알림 수신 대상을 해석

    활성 배정마다 간호사, 이어서 배정된 의사를 대상으로 추가하고,
    마지막으로 진행 중 케이스의 담당 의사를 추가한다. 한쪽 조회가 실패해도
    나머지 조회는 계속한다.

    Args:
        store: 배정/케이스 조회 저장소
        patient_id: 환자 식별자
        dedupe: 중복 대상 제거 여부(첫 등장 순서 유지)

    Returns:
        수신 대상 목록, 조회 실패 목록
    """
    targets: list[AlertTarget] = []
    failures: list[LookupFailure] = []

    try:
        assignments = store.find_active_assignments(patient_id)
    except LookupFailure as exc:
        failures.append(exc)
        log_event(
            "assignment_lookup_failed",
            "ERROR",
            patient_id,
            "resolve",
            exc.message,
            error_code=exc.code,
        )
        assignments = []
    for assignment in assignments:
        targets.append(AlertTarget(user_id=str(assignment["nurse_id"]), role="nurse"))
        if assignment.get("doctor_id"):
            targets.append(
                AlertTarget(user_id=str(assignment["doctor_id"]), role="doctor")
            )

    try:
        open_case = store.find_open_case(patient_id)
    except LookupFailure as exc:
        failures.append(exc)
        log_event(
            "case_lookup_failed",
            "ERROR",
            patient_id,
            "resolve",
            exc.message,
            error_code=exc.code,
        )
        open_case = None
    if open_case and open_case.get("doctor_id"):
        targets.append(AlertTarget(user_id=str(open_case["doctor_id"]), role="doctor"))

    if dedupe:
        targets = _dedupe(targets)
    return targets, failures


def deliver(store: AlertStore, notification: dict) -> bool:
    """저장된 알림을 실시간 푸시로 전달

    Args:
        store: 전달 완료를 기록할 저장소
        notification: 저장된 알림 레코드

    Returns:
        전달 성공 여부
    """
    if not push_enabled():
        return False
    try:
        push_notification(notification)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        log_event(
            "push_failed",
            "WARNING",
            str(notification.get("related_patient_id") or "-"),
            "push",
            f"{notification.get('notification_id')}: {exc}",
            error_code="VT_PUSH_001",
        )
        return False
    try:
        store.mark_delivered(notification["notification_id"])
    except NotificationWriteFailure as exc:
        log_event(
            "push_failed",
            "WARNING",
            str(notification.get("related_patient_id") or "-"),
            "push",
            exc.message,
            error_code=exc.code,
        )
        return False
    return True


def _create_with_retry(
    store: AlertStore,
    target: AlertTarget,
    message: str,
    patient_id: str,
    vital_id: str | None,
    retries: int,
) -> dict:
    """알림 저장을 최대 retries회 시도

    Raises:
        NotificationWriteFailure: 모든 시도 실패 시 마지막 예외
    """
    last_error: NotificationWriteFailure | None = None
    for _ in range(retries):
        try:
            return store.create_notification(
                user_id=target.user_id,
                type=NOTIFICATION_TYPE,
                message=message,
                related_patient_id=patient_id,
                related_vital_id=vital_id,
                role=target.role,
            )
        except NotificationWriteFailure as exc:
            last_error = exc
    raise last_error or NotificationWriteFailure(target.user_id, "시도 횟수 없음")


def dispatch_critical_alert(
    store: AlertStore,
    patient: dict,
    vital_id: str | None,
    verdict: SeverityVerdict,
    alerting: AlertingConfig | None = None,
) -> FanoutResult:
    """위급 판정된 측정값의 알림을 팬아웃

    수신 대상을 모두 해석한 뒤 대상마다 알림을 저장한다. 개별 저장 실패는
    기록 후 건너뛰며 이미 저장된 알림이나 측정값은 되돌리지 않는다.

    Args:
        store: 배정/케이스/알림 저장소
        patient: 환자 레코드(patient_id, full_name)
        vital_id: 원본 측정값 식별자
        verdict: 위급 판정 결과
        alerting: 알림 설정

    Returns:
        팬아웃 결과
    """
    alerting = alerting or AlertingConfig()
    patient_id = str(patient["patient_id"])
    message = build_alert_message(patient.get("full_name") or "", verdict.conditions)
    targets, failures = resolve_recipients(
        store, patient_id, dedupe=alerting.dedupe_recipients
    )
    result = FanoutResult(
        message=message,
        targets=targets,
        lookup_errors=[failure.code for failure in failures],
    )

    for target in targets:
        try:
            notification = _create_with_retry(
                store, target, message, patient_id, vital_id, alerting.retry
            )
        except NotificationWriteFailure as exc:
            result.failed.append(target)
            log_event(
                "notification_failed",
                "ERROR",
                patient_id,
                "notify",
                exc.message,
                error_code=exc.code,
            )
            continue
        result.created.append(notification["notification_id"])
        deliver(store, notification)

    if result.failed:
        last_error_code = "VT_NOTIFY_001"
    elif result.lookup_errors:
        last_error_code = result.lookup_errors[-1]
    else:
        last_error_code = None
    log_event(
        "fanout_complete",
        "WARNING" if last_error_code else "INFO",
        patient_id,
        "notify",
        f"알림 {len(result.created)}/{len(targets)}건 생성",
        error_code=last_error_code,
        record_count=len(result.created),
    )
    TelemetryStore().update_alert_status(
        {
            "patient_id": patient_id,
            "last_alert_at": utc_now(),
            "last_status": "실패" if last_error_code else "성공",
            "last_error_code": last_error_code,
            "target_count": len(targets),
            "failed_count": len(result.failed),
        }
    )
    return result


def redeliver_pending(store: WardStore, limit: int = 100) -> int:
    """미전송 알림을 실시간 푸시로 재전송

    Args:
        store: 병동 저장소
        limit: 한 번에 처리할 최대 건수

    Returns:
        전송 성공 건수
    """
    if not push_enabled():
        return 0
    pending = store.list_undelivered_notifications(limit)
    delivered = sum(1 for notification in pending if deliver(store, notification))
    log_event(
        "redelivery_complete",
        "INFO",
        "-",
        "push",
        f"재전송 {delivered}/{len(pending)}건",
        record_count=delivered,
    )
    return delivered
