from fastapi import APIRouter

from ward_alert.clients.push_api import push_enabled
from ward_alert.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health_check() -> dict:
    """서비스 헬스 상태와 푸시 게이트웨이 사용 여부를 반환"""
    settings = get_settings()
    return {
        "status": "정상",
        "service": "ward-alert",
        "version": settings.version,
        "environment": settings.environment,
        "push_enabled": push_enabled(),
    }
