from __future__ import annotations

from typing import Mapping

from ward_alert.core.thresholds import CRITICAL_THRESHOLDS
from ward_alert.models.vitals import SeverityVerdict, VitalReading
from ward_alert.utils.parsing import format_reading, parse_vital

REQUIRED_CHANNELS = ("heart_rate", "spo2", "temperature")


def _required_values(reading: VitalReading | Mapping) -> dict[str, float]:
    """필수 채널 값을 추출하고 검증

    Args:
        reading: 측정값 모델 또는 매핑

    Returns:
        채널별 실수 값

    Raises:
        InvalidInput: 필수 채널 누락 또는 숫자가 아닐 때
    """
    if isinstance(reading, VitalReading):
        raw = reading.model_dump()
    else:
        raw = dict(reading)
    return {channel: parse_vital(raw.get(channel), channel) for channel in REQUIRED_CHANNELS}


def classify(reading: VitalReading | Mapping) -> SeverityVerdict:
    """심박수, 산소포화도, 체온으로 위급 여부를 판정

    메시지 순서는 심박수, 산소포화도, 체온 순으로 고정된다.

    Args:
        reading: 측정값 모델 또는 매핑(heart_rate, spo2, temperature)

    Returns:
        위급 판정 결과

    Raises:
        InvalidInput: 필수 채널 누락 또는 숫자가 아닐 때
    """
    values = _required_values(reading)
    heart_rate = values["heart_rate"]
    spo2 = values["spo2"]
    temperature = values["temperature"]

    hr_bounds = CRITICAL_THRESHOLDS["heart_rate"]
    spo2_bounds = CRITICAL_THRESHOLDS["spo2"]
    temp_bounds = CRITICAL_THRESHOLDS["temperature"]

    conditions: list[str] = []
    if heart_rate < hr_bounds["min"]:
        conditions.append(
            f"Low heart rate: {format_reading(heart_rate)} bpm (below {hr_bounds['min']})"
        )
    if heart_rate > hr_bounds["max"]:
        conditions.append(
            f"High heart rate: {format_reading(heart_rate)} bpm (above {hr_bounds['max']})"
        )

    if spo2 < spo2_bounds["min"]:
        conditions.append(
            f"Low SpO2: {format_reading(spo2)}% (below {spo2_bounds['min']}%)"
        )

    if temperature < temp_bounds["min"]:
        conditions.append(
            f"Low temperature: {format_reading(temperature)}°C (below {temp_bounds['min']}°C)"
        )
    if temperature > temp_bounds["max"]:
        conditions.append(
            f"High temperature: {format_reading(temperature)}°C (above {temp_bounds['max']}°C)"
        )

    return SeverityVerdict(is_critical=len(conditions) > 0, conditions=conditions)
