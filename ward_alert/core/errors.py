class WardAlertError(Exception):
    """병동 알림 예외의 기본 클래스"""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class InvalidInput(WardAlertError):
    """필수 생체신호 누락 또는 숫자가 아닐 때 발생"""

    def __init__(self, field: str, message: str, code: str = "VT_INPUT_001") -> None:
        super().__init__(code, f"{field}: {message}")
        self.field = field


class UnknownChannel(InvalidInput):
    """표시 등급 분류에서 지원하지 않는 채널일 때 발생"""

    def __init__(self, channel: str) -> None:
        super().__init__("channel", f"지원하지 않는 채널: {channel}", "VT_INPUT_002")
        self.channel = channel


class PatientNotFound(WardAlertError):
    """환자 조회 실패 시 발생"""

    def __init__(self, patient_id: str) -> None:
        super().__init__("VT_LOOKUP_404", f"환자 없음: {patient_id}")
        self.patient_id = patient_id


class LookupFailure(WardAlertError):
    """배정 또는 케이스 저장소 조회 실패 시 발생"""

    def __init__(self, source: str, message: str) -> None:
        super().__init__("VT_LOOKUP_001", f"{source}: {message}")
        self.source = source


class NotificationWriteFailure(WardAlertError):
    """개별 알림 저장 실패 시 발생"""

    def __init__(self, user_id: str, message: str) -> None:
        super().__init__("VT_NOTIFY_001", f"{user_id}: {message}")
        self.user_id = user_id
