from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ward_alert.api.routes import router as api_router
from ward_alert.core.config import get_settings, load_app_config
from ward_alert.core.errors import InvalidInput, PatientNotFound, WardAlertError
from ward_alert.core.logging import configure_logging
from ward_alert.core.scheduler import start_scheduler


def _error_response(exc: WardAlertError) -> JSONResponse:
    if isinstance(exc, InvalidInput):
        status_code = 400
    elif isinstance(exc, PatientNotFound):
        status_code = 404
    else:
        status_code = 500
    return JSONResponse(
        status_code=status_code,
        content={"error_code": exc.code, "message": exc.message},
    )


async def _handle_ward_alert_error(request: Request, exc: WardAlertError) -> JSONResponse:
    return _error_response(exc)


def create_app() -> FastAPI:
    """애플리케이션을 생성하고 FastAPI를 설정"""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Ward Alert", version=settings.version)
    app.add_exception_handler(WardAlertError, _handle_ward_alert_error)
    app.include_router(api_router)

    if settings.scheduler_enabled:
        config = load_app_config()
        start_scheduler(config)

    return app


app = create_app()
