from ward_alert.core.config import AlertingConfig
from ward_alert.core.errors import LookupFailure, NotificationWriteFailure
from ward_alert.core.fanout import (
    build_alert_message,
    dispatch_critical_alert,
    resolve_recipients,
)
from ward_alert.core.telemetry import TelemetryStore
from ward_alert.models.vitals import SeverityVerdict


class FakeStore:
    def __init__(
        self,
        assignments=None,
        open_case=None,
        assignment_error=False,
        case_error=False,
        failing_users=(),
        fail_times=None,
    ):
        self.assignments = assignments or []
        self.open_case = open_case
        self.assignment_error = assignment_error
        self.case_error = case_error
        self.failing_users = set(failing_users)
        self.fail_times = dict(fail_times or {})
        self.notifications = []
        self.attempts = {}

    def find_active_assignments(self, patient_id):
        if self.assignment_error:
            raise LookupFailure("assignments", "unavailable")
        return self.assignments

    def find_open_case(self, patient_id):
        if self.case_error:
            raise LookupFailure("cases", "unavailable")
        return self.open_case

    def create_notification(
        self, user_id, type, message, related_patient_id, related_vital_id, role=None
    ):
        self.attempts[user_id] = self.attempts.get(user_id, 0) + 1
        if user_id in self.failing_users:
            raise NotificationWriteFailure(user_id, "write failed")
        if self.fail_times.get(user_id, 0) > 0:
            self.fail_times[user_id] -= 1
            raise NotificationWriteFailure(user_id, "transient")
        notification = {
            "notification_id": f"n{len(self.notifications) + 1}",
            "user_id": user_id,
            "role": role,
            "type": type,
            "message": message,
            "related_patient_id": related_patient_id,
            "related_vital_id": related_vital_id,
        }
        self.notifications.append(notification)
        return notification

    def mark_delivered(self, notification_id):
        pass


PATIENT = {"patient_id": "P1", "full_name": "Jane Doe"}
VERDICT = SeverityVerdict(
    is_critical=True,
    conditions=["High heart rate: 140 bpm (above 120)", "Low SpO2: 85% (below 90%)"],
)


def test_build_alert_message_joins_conditions():
    message = build_alert_message("Jane Doe", VERDICT.conditions)
    assert message == (
        "CRITICAL: Patient Jane Doe - High heart rate: 140 bpm (above 120); "
        "Low SpO2: 85% (below 90%)"
    )


def test_resolve_recipients_nurse_doctor_and_case_doctor():
    store = FakeStore(
        assignments=[{"nurse_id": "N1", "doctor_id": "D1"}],
        open_case={"doctor_id": "D1"},
    )
    targets, failures = resolve_recipients(store, "P1")
    user_ids = [target.user_id for target in targets]
    assert failures == []
    assert user_ids.count("N1") == 1
    assert user_ids.count("D1") >= 1
    assert [(t.user_id, t.role) for t in targets] == [
        ("N1", "nurse"),
        ("D1", "doctor"),
        ("D1", "doctor"),
    ]


def test_resolve_recipients_dedupes_when_enabled():
    store = FakeStore(
        assignments=[{"nurse_id": "N1", "doctor_id": "D1"}],
        open_case={"doctor_id": "D1"},
    )
    targets, _ = resolve_recipients(store, "P1", dedupe=True)
    assert [target.user_id for target in targets] == ["N1", "D1"]


def test_assignment_without_doctor_targets_nurse_only():
    store = FakeStore(
        assignments=[
            {"nurse_id": "N1", "doctor_id": None},
            {"nurse_id": "N2", "doctor_id": "D2"},
        ]
    )
    targets, _ = resolve_recipients(store, "P1")
    assert [target.user_id for target in targets] == ["N1", "N2", "D2"]


def test_empty_fanout_is_not_an_error():
    store = FakeStore()
    result = dispatch_critical_alert(store, PATIENT, "V1", VERDICT)
    assert result.targets == []
    assert result.created == []
    assert store.notifications == []


def test_dispatch_creates_one_notification_per_target():
    store = FakeStore(
        assignments=[{"nurse_id": "N1", "doctor_id": "D1"}],
        open_case={"doctor_id": "D9"},
    )
    result = dispatch_critical_alert(store, PATIENT, "V1", VERDICT)
    assert [n["user_id"] for n in store.notifications] == ["N1", "D1", "D9"]
    assert all(n["type"] == "critical" for n in store.notifications)
    assert all(n["message"] == result.message for n in store.notifications)
    assert all(n["related_patient_id"] == "P1" for n in store.notifications)
    assert all(n["related_vital_id"] == "V1" for n in store.notifications)
    assert result.created == ["n1", "n2", "n3"]


def test_assignment_lookup_failure_still_notifies_case_doctor():
    store = FakeStore(assignment_error=True, open_case={"doctor_id": "D1"})
    result = dispatch_critical_alert(store, PATIENT, "V1", VERDICT)
    assert [n["user_id"] for n in store.notifications] == ["D1"]
    assert result.lookup_errors == ["VT_LOOKUP_001"]
    rows = TelemetryStore().query_logs("event = ?", ["assignment_lookup_failed"])
    assert len(rows) == 1


def test_write_failure_skips_target_and_continues():
    store = FakeStore(
        assignments=[
            {"nurse_id": "N1", "doctor_id": "D1"},
            {"nurse_id": "N2", "doctor_id": None},
        ],
        failing_users={"D1"},
    )
    result = dispatch_critical_alert(
        store, PATIENT, "V1", VERDICT, AlertingConfig(retry=2)
    )
    assert [n["user_id"] for n in store.notifications] == ["N1", "N2"]
    assert [target.user_id for target in result.failed] == ["D1"]
    assert store.attempts["D1"] == 2
    rows = TelemetryStore().query_logs("event = ?", ["notification_failed"])
    assert rows[0][5] == "VT_NOTIFY_001"


def test_transient_write_failure_is_retried():
    store = FakeStore(
        assignments=[{"nurse_id": "N1", "doctor_id": None}],
        fail_times={"N1": 2},
    )
    result = dispatch_critical_alert(
        store, PATIENT, "V1", VERDICT, AlertingConfig(retry=3)
    )
    assert result.failed == []
    assert store.attempts["N1"] == 3
    assert [n["user_id"] for n in store.notifications] == ["N1"]


def test_dispatch_records_alert_status():
    store = FakeStore(assignments=[{"nurse_id": "N1", "doctor_id": None}])
    dispatch_critical_alert(store, PATIENT, "V1", VERDICT)
    rows = TelemetryStore().query_alert_status()
    assert rows[0][0] == "P1"
    assert rows[0][2] == "성공"
    assert rows[0][4] == 1


def test_case_lookup_failure_still_notifies_assigned_staff():
    store = FakeStore(assignments=[{"nurse_id": "N1", "doctor_id": "D1"}], case_error=True)
    result = dispatch_critical_alert(store, PATIENT, "V1", VERDICT)
    assert [n["user_id"] for n in store.notifications] == ["N1", "D1"]
    assert result.lookup_errors == ["VT_LOOKUP_001"]
    rows = TelemetryStore().query_logs("event = ?", ["case_lookup_failed"])
    assert len(rows) == 1
