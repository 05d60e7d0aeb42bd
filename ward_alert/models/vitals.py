from typing import Literal

from pydantic import BaseModel, Field

Tier = Literal["normal", "warning", "critical"]


class BloodPressure(BaseModel):
    """혈압 측정값"""

    systolic: float = Field(..., description="수축기 혈압(mmHg)")
    diastolic: float = Field(..., description="이완기 혈압(mmHg)")


class VitalReading(BaseModel):
    """단일 생체신호 측정값"""

    heart_rate: float = Field(..., description="심박수(bpm)")
    spo2: float = Field(..., description="산소포화도(%)")
    temperature: float = Field(..., description="체온(섭씨)")
    blood_pressure: BloodPressure | None = Field(default=None, description="혈압")
    respiratory_rate: float | None = Field(default=None, description="호흡수(/min)")


class SeverityVerdict(BaseModel):
    """위급 판정 결과"""

    is_critical: bool = Field(..., description="위급 여부")
    conditions: list[str] = Field(default_factory=list, description="위반 채널 메시지")


class ChannelStatus(BaseModel):
    """대시보드 채널 표시 상태"""

    value: float | None = Field(default=None, description="측정값")
    status: Tier = Field(..., description="표시 등급")


class BloodPressureStatus(BaseModel):
    """대시보드 혈압 표시 상태"""

    systolic: float | None = Field(default=None, description="수축기 혈압")
    diastolic: float | None = Field(default=None, description="이완기 혈압")
    status: Tier = Field(..., description="표시 등급")


class VitalsStatus(BaseModel):
    """간호사 대시보드용 채널별 표시 등급"""

    bp: BloodPressureStatus
    hr: ChannelStatus
    temp: ChannelStatus
    o2: ChannelStatus
    resp: ChannelStatus
    alert: dict | None = Field(default=None, description="위급 표시 알림")
