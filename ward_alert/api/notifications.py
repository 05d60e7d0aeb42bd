from fastapi import APIRouter, Depends, HTTPException

from ward_alert.core.store import WardStore, get_ward_store
from ward_alert.utils.parsing import parse_limit

router = APIRouter()


@router.get("/{user_id}")
def user_notifications(
    user_id: str,
    unread_only: bool = False,
    type: str | None = None,
    limit: str | None = None,
    store: WardStore = Depends(get_ward_store),
) -> list[dict]:
    """사용자 알림 조회"""
    return store.list_notifications(
        user_id, unread_only=unread_only, type=type, limit=parse_limit(limit, 50)
    )


@router.get("/{user_id}/critical-events")
def critical_events(user_id: str, store: WardStore = Depends(get_ward_store)) -> list[dict]:
    """사용자의 위급 알림을 환자 정보와 함께 정리

    Args:
        user_id: 사용자 식별자
        store: 병동 저장소

    Returns:
        위급 이벤트 목록
    """
    notifications = store.list_notifications(user_id, type="critical", limit=50)
    return [
        {
            "notification_id": notification["notification_id"],
            "patient_id": notification["related_patient_id"],
            "patient_name": notification.get("patient_name") or "Unknown Patient",
            "room": notification.get("room") or "N/A",
            "reason": notification["message"] or "Critical alert",
            "type": "critical",
            "created_at": notification["created_at"],
            "source": "vitals",
        }
        for notification in notifications
    ]


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, store: WardStore = Depends(get_ward_store)) -> dict:
    """알림 읽음 처리"""
    notification = store.mark_notification_read(notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification
