from __future__ import annotations

import httpx

from ward_alert.core.config import get_settings


def push_enabled() -> bool:
    """실시간 푸시 게이트웨이 설정 여부"""
    return bool(get_settings().push_base_url.strip())


def push_notification(notification: dict) -> None:
    """실시간 푸시 게이트웨이로 알림을 전송

    수신자 룸(user_id)으로의 전달은 게이트웨이가 담당한다.

    Args:
        notification: 저장된 알림 레코드

    Raises:
        httpx.HTTPError: 전송 실패 시
    """
    settings = get_settings()
    headers = {}
    if settings.push_api_key:
        headers["Authorization"] = f"Bearer {settings.push_api_key}"
    payload = {
        "room": notification["user_id"],
        "event": "notification",
        "notification": notification,
    }
    url = settings.push_base_url.rstrip("/") + "/notifications"
    with httpx.Client(timeout=10.0) as client:
        response = client.post(url, json=payload, headers=headers)
        response.raise_for_status()
