from __future__ import annotations

from ward_alert.core.errors import InvalidInput, UnknownChannel
from ward_alert.core.thresholds import DISPLAY_CRITICAL_BOUNDS, NORMAL_VITAL_RANGES
from ward_alert.models.vitals import (
    BloodPressureStatus,
    ChannelStatus,
    Tier,
    VitalsStatus,
)
from ward_alert.utils.parsing import parse_vital

# 대시보드 채널 이름과 임계값 테이블 키
CHANNELS = {
    "bp": "blood_pressure",
    "hr": "heart_rate",
    "temp": "temperature",
    "o2": "oxygen_saturation",
    "resp": "respiratory_rate",
}

ALERT_CHANNELS = ("bp", "hr", "o2", "temp")


def _outside(value: float, bounds) -> bool:
    if "min" in bounds and value < bounds["min"]:
        return True
    if "max" in bounds and value > bounds["max"]:
        return True
    return False


def _blood_pressure_tier(systolic: float, diastolic: float) -> Tier:
    critical = DISPLAY_CRITICAL_BOUNDS["blood_pressure"]
    normal = NORMAL_VITAL_RANGES["blood_pressure"]
    if (
        systolic < critical["systolic_min"]
        or systolic > critical["systolic_max"]
        or diastolic < critical["diastolic_min"]
        or diastolic > critical["diastolic_max"]
    ):
        return "critical"
    if (
        systolic < normal["systolic_min"]
        or systolic > normal["systolic_max"]
        or diastolic < normal["diastolic_min"]
        or diastolic > normal["diastolic_max"]
    ):
        return "warning"
    return "normal"


def tier(channel: str, primary: object, secondary: object = None) -> Tier:
    """대시보드 표시 등급을 분류

    위급 범위를 먼저 확인하고, 이어서 정상 범위를 확인한다.
    산소포화도는 하한만 검사한다.

    Args:
        channel: 채널 이름(bp, hr, temp, o2, resp)
        primary: 측정값(혈압은 수축기)
        secondary: 혈압의 이완기 값

    Returns:
        normal, warning, critical 중 하나

    Raises:
        UnknownChannel: 지원하지 않는 채널일 때
        InvalidInput: 값이 숫자가 아닐 때
    """
    if channel not in CHANNELS:
        raise UnknownChannel(channel)
    if channel == "bp":
        if secondary is None:
            raise InvalidInput("diastolic", "값이 필요함")
        return _blood_pressure_tier(
            parse_vital(primary, "systolic"), parse_vital(secondary, "diastolic")
        )

    key = CHANNELS[channel]
    value = parse_vital(primary, key)
    if _outside(value, DISPLAY_CRITICAL_BOUNDS[key]):
        return "critical"
    normal = NORMAL_VITAL_RANGES[key]
    if channel == "o2":
        return "warning" if value < normal["min"] else "normal"
    if _outside(value, normal):
        return "warning"
    return "normal"


def summarize_status(vital: dict) -> VitalsStatus:
    """저장된 측정값의 채널별 표시 등급을 계산

    값이 없는 채널은 normal로 표시한다. 체온은 저장된 값을 그대로
    화씨 표시 기준에 적용한다.

    Args:
        vital: 저장된 측정값 딕셔너리

    Returns:
        채널별 표시 상태
    """
    systolic = vital.get("systolic")
    diastolic = vital.get("diastolic")
    if systolic is not None and diastolic is not None:
        bp_status = tier("bp", systolic, diastolic)
    else:
        bp_status = "normal"

    channels: dict[str, ChannelStatus] = {}
    for channel, column in (
        ("hr", "heart_rate"),
        ("temp", "temperature"),
        ("o2", "spo2"),
        ("resp", "respiratory_rate"),
    ):
        value = vital.get(column)
        channels[channel] = ChannelStatus(
            value=value,
            status=tier(channel, value) if value is not None else "normal",
        )

    status = VitalsStatus(
        bp=BloodPressureStatus(systolic=systolic, diastolic=diastolic, status=bp_status),
        **channels,
    )
    statuses = {"bp": status.bp.status, **{k: v.status for k, v in channels.items()}}
    if any(statuses[channel] == "critical" for channel in ALERT_CHANNELS):
        status.alert = {
            "message": "Critical vital signs detected",
            "action": "Immediate attention required",
        }
    return status
