"""생체신호 임계값 테이블

위급 알림 판정(섭씨)과 간호사 대시보드 표시 등급(화씨)은 단위와 목적이 다르므로
서로 다른 상수로 유지한다.
"""

from types import MappingProxyType

# 위급 알림 트리거 기준, 경계값은 정상 범위에 포함
CRITICAL_THRESHOLDS = MappingProxyType(
    {
        "heart_rate": MappingProxyType({"min": 50, "max": 120}),
        "spo2": MappingProxyType({"min": 90}),
        "temperature": MappingProxyType({"min": 35, "max": 39}),
    }
)

# 간호사 대시보드 정상 범위(경고 등급 경계)
NORMAL_VITAL_RANGES = MappingProxyType(
    {
        "blood_pressure": MappingProxyType(
            {
                "systolic_min": 90,
                "systolic_max": 120,
                "diastolic_min": 60,
                "diastolic_max": 80,
                "unit": "mmHg",
            }
        ),
        "heart_rate": MappingProxyType({"min": 60, "max": 100, "unit": "bpm"}),
        "temperature": MappingProxyType({"min": 97.8, "max": 99.1, "unit": "°F"}),
        "oxygen_saturation": MappingProxyType({"min": 95, "max": 100, "unit": "%"}),
        "respiratory_rate": MappingProxyType({"min": 12, "max": 20, "unit": "/min"}),
    }
)

# 간호사 대시보드 위급 등급 경계
DISPLAY_CRITICAL_BOUNDS = MappingProxyType(
    {
        "blood_pressure": MappingProxyType(
            {
                "systolic_min": 80,
                "systolic_max": 140,
                "diastolic_min": 50,
                "diastolic_max": 100,
            }
        ),
        "heart_rate": MappingProxyType({"min": 50, "max": 120}),
        "temperature": MappingProxyType({"min": 96, "max": 101}),
        "oxygen_saturation": MappingProxyType({"min": 90}),
        "respiratory_rate": MappingProxyType({"min": 8, "max": 25}),
    }
)


def normal_ranges_payload() -> dict:
    """정상 범위 테이블을 직렬화 가능한 딕셔너리로 반환"""
    return {name: dict(bounds) for name, bounds in NORMAL_VITAL_RANGES.items()}
