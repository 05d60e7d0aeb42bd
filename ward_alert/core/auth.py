from __future__ import annotations

import base64
import binascii
import secrets

from fastapi import HTTPException, Request, status

from ward_alert.core.config import get_settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


def _decode_basic(credentials: str) -> tuple[str, str]:
    """Basic 인증 헤더를 아이디와 비밀번호로 분리

    Args:
        credentials: Authorization 헤더 값

    Returns:
        아이디, 비밀번호

    Raises:
        HTTPException: 헤더 형식 오류 시
    """
    if not credentials.startswith("Basic "):
        raise _unauthorized("인증 필요")
    encoded = credentials.replace("Basic ", "", 1).strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise _unauthorized("인증 정보 오류") from exc
    if ":" not in decoded:
        raise _unauthorized("인증 정보 오류")
    user, password = decoded.split(":", 1)
    return user, password


def require_admin(request: Request) -> None:
    """관리자 인증 검증

    Args:
        request: FastAPI 요청 객체

    Raises:
        HTTPException: 인증 실패 시
    """
    settings = get_settings()
    admin_id, admin_password = _decode_basic(request.headers.get("Authorization", ""))
    valid_id = secrets.compare_digest(
        admin_id.encode("utf-8"), settings.admin_id.encode("utf-8")
    )
    valid_password = secrets.compare_digest(
        admin_password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    if not (valid_id and valid_password):
        raise _unauthorized("인증 실패")
