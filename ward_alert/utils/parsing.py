from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable

from ward_alert.core.errors import InvalidInput

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def utc_now() -> datetime:
    """DuckDB TIMESTAMP 컬럼용 현재 UTC 시각(naive)을 반환"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: datetime | None) -> str | None:
    """naive UTC 시각을 ISO8601(Z) 문자열로 변환

    Args:
        value: naive UTC 시각

    Returns:
        ISO8601 문자열 또는 None
    """
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


def parse_vital(value: object, field: str) -> float:
    """생체신호 값을 유한한 실수로 파싱

    Args:
        value: 원본 값
        field: 에러 메시지에 사용할 필드명

    Returns:
        파싱된 실수 값

    Raises:
        InvalidInput: 값이 없거나 숫자가 아닐 때
    """
    if value is None:
        raise InvalidInput(field, "값이 필요함")
    if isinstance(value, bool):
        raise InvalidInput(field, f"숫자가 아님: {value}")
    try:
        parsed = float(str(value).strip())
    except ValueError as exc:
        raise InvalidInput(field, f"숫자가 아님: {value}") from exc
    if not math.isfinite(parsed):
        raise InvalidInput(field, f"유한한 숫자가 아님: {value}")
    return parsed


def parse_vital_optional(value: object, field: str) -> float | None:
    """값이 있으면 생체신호 값으로 파싱

    Args:
        value: 원본 값
        field: 에러 메시지에 사용할 필드명

    Returns:
        파싱된 실수 또는 None
    """
    if value is None or str(value).strip() == "":
        return None
    return parse_vital(value, field)


def format_reading(value: float) -> str:
    """메시지용 수치 표기

    정수 값은 소수점 없이 표기한다.
    """
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def parse_limit(value: object, default: int, maximum: int = 1000) -> int:
    """조회 건수 제한 값을 파싱

    Args:
        value: 원본 값
        default: 값이 없을 때 기본값
        maximum: 허용 최대값

    Returns:
        1 이상 maximum 이하의 정수

    Raises:
        InvalidInput: 정수가 아니거나 1 미만일 때
    """
    if value is None or str(value).strip() == "":
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError as exc:
        raise InvalidInput("limit", f"정수가 아님: {value}") from exc
    if parsed < 1:
        raise InvalidInput("limit", f"1 이상이어야 함: {value}")
    return min(parsed, maximum)


def parse_date(
    value: str | None, field: str, formats: Iterable[str] = DATE_FORMATS
) -> datetime | None:
    """조회 기간 날짜를 파싱

    Args:
        value: 원본 날짜 값
        field: 에러 메시지에 사용할 필드명
        formats: 허용 포맷 목록

    Returns:
        naive UTC 시각 또는 None

    Raises:
        InvalidInput: 지원하지 않는 형식일 때
    """
    if value is None or str(value).strip() == "":
        return None
    for fmt in formats:
        try:
            return datetime.strptime(str(value).strip(), fmt)
        except ValueError:
            continue
    raise InvalidInput(field, f"지원하지 않는 날짜 형식: {value}")
