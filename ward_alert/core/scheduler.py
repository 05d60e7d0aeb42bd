from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler

from ward_alert.clients.push_api import push_enabled
from ward_alert.core.config import AppConfig
from ward_alert.core.fanout import redeliver_pending
from ward_alert.core.store import get_ward_store

_scheduler: BackgroundScheduler | None = None


def _redeliver_job() -> None:
    redeliver_pending(get_ward_store())


def start_scheduler(config: AppConfig) -> BackgroundScheduler:
    """푸시 재전송용 백그라운드 스케줄러를 시작

    푸시 게이트웨이가 설정되지 않으면 작업 없이 시작한다.

    Args:
        config: 알림 설정 객체

    Returns:
        BackgroundScheduler 인스턴스
    """
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
    scheduler = BackgroundScheduler()
    if push_enabled():
        scheduler.add_job(
            _redeliver_job,
            "interval",
            minutes=config.alerting.redelivery_minutes,
            id="push-redelivery",
            replace_existing=True,
        )
    scheduler.start()
    _scheduler = scheduler
    return scheduler


def stop_scheduler() -> None:
    """실행 중인 스케줄러를 종료"""
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
