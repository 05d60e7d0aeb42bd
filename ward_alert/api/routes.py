from fastapi import APIRouter

from ward_alert.api.admin import router as admin_router
from ward_alert.api.health import router as health_router
from ward_alert.api.notifications import router as notifications_router
from ward_alert.api.vitals import router as vitals_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(vitals_router, prefix="/v1/vitals", tags=["vitals"])
router.include_router(
    notifications_router, prefix="/v1/notifications", tags=["notifications"]
)
router.include_router(admin_router, prefix="/admin", tags=["admin"])
