from typing import Literal

from pydantic import BaseModel, Field


class PatientIn(BaseModel):
    """환자 등록 요청"""

    patient_id: str | None = Field(default=None, description="환자 식별자(미지정 시 생성)")
    full_name: str = Field(..., min_length=1, description="환자 이름")
    national_id: str | None = Field(default=None, description="주민 식별 번호")
    room: str | None = Field(default=None, max_length=30, description="병실")


class AssignmentIn(BaseModel):
    """간호사/의사 배정 요청"""

    patient_id: str = Field(..., description="환자 식별자")
    nurse_id: str = Field(..., description="간호사 식별자")
    doctor_id: str | None = Field(default=None, description="의사 식별자")
    shift: Literal["morning", "afternoon", "night"] = Field(..., description="근무조")


class CaseIn(BaseModel):
    """케이스 개시 요청"""

    patient_id: str = Field(..., description="환자 식별자")
    doctor_id: str = Field(..., description="담당 의사 식별자")


class CaseStatusIn(BaseModel):
    """의사가 지정하는 환자 상태"""

    patient_status: Literal["stable", "critical"] = Field(..., description="환자 상태")


class AlertTarget(BaseModel):
    """위급 알림 수신 대상"""

    user_id: str = Field(..., description="사용자 식별자")
    role: Literal["nurse", "doctor"] = Field(..., description="수신자 역할")


class FanoutResult(BaseModel):
    """위급 알림 팬아웃 결과"""

    message: str = Field(..., description="공유 알림 메시지")
    targets: list[AlertTarget] = Field(default_factory=list, description="해석된 수신 대상")
    created: list[str] = Field(default_factory=list, description="생성된 알림 식별자")
    failed: list[AlertTarget] = Field(default_factory=list, description="저장 실패 대상")
    lookup_errors: list[str] = Field(default_factory=list, description="조회 실패 에러 코드")
