from __future__ import annotations

import threading
import uuid
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Protocol

import duckdb

from ward_alert.core.config import get_settings
from ward_alert.core.errors import LookupFailure, NotificationWriteFailure
from ward_alert.utils.parsing import to_iso, utc_now

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS row_seq",
    """
    CREATE TABLE IF NOT EXISTS patients (
        patient_id VARCHAR PRIMARY KEY,
        full_name VARCHAR,
        national_id VARCHAR,
        room VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vitals (
        vital_id VARCHAR PRIMARY KEY,
        seq BIGINT DEFAULT nextval('row_seq'),
        patient_id VARCHAR,
        heart_rate DOUBLE,
        spo2 DOUBLE,
        temperature DOUBLE,
        systolic DOUBLE,
        diastolic DOUBLE,
        respiratory_rate DOUBLE,
        source VARCHAR,
        is_critical BOOLEAN,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS assignments (
        assignment_id VARCHAR PRIMARY KEY,
        seq BIGINT DEFAULT nextval('row_seq'),
        patient_id VARCHAR,
        nurse_id VARCHAR,
        doctor_id VARCHAR,
        shift VARCHAR,
        is_active BOOLEAN,
        assigned_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cases (
        case_id VARCHAR PRIMARY KEY,
        seq BIGINT DEFAULT nextval('row_seq'),
        patient_id VARCHAR,
        doctor_id VARCHAR,
        status VARCHAR,
        patient_status VARCHAR,
        opened_at TIMESTAMP,
        closed_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        notification_id VARCHAR PRIMARY KEY,
        seq BIGINT DEFAULT nextval('row_seq'),
        user_id VARCHAR,
        role VARCHAR,
        type VARCHAR,
        message VARCHAR,
        is_read BOOLEAN,
        delivered BOOLEAN,
        related_patient_id VARCHAR,
        related_vital_id VARCHAR,
        created_at TIMESTAMP
    )
    """,
]

_TIMESTAMP_COLUMNS = {"created_at", "assigned_at", "opened_at", "closed_at"}


class AlertStore(Protocol):
    """위급 알림 팬아웃이 사용하는 저장소 인터페이스"""

    def find_active_assignments(self, patient_id: str) -> list[dict]: ...

    def find_open_case(self, patient_id: str) -> dict | None: ...

    def create_notification(
        self,
        user_id: str,
        type: str,
        message: str,
        related_patient_id: str,
        related_vital_id: str | None,
        role: str | None = None,
    ) -> dict: ...

    def mark_delivered(self, notification_id: str) -> None: ...


def _new_id() -> str:
    return uuid.uuid4().hex


class WardStore:
    """환자, 측정값, 배정, 케이스, 알림을 저장하는 DuckDB 저장소"""

    def __init__(self, path: str) -> None:
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(path)
        self._lock = threading.Lock()
        for statement in _SCHEMA:
            self._conn.execute(statement)

    def close(self) -> None:
        """연결 종료"""
        self._conn.close()

    def _execute(self, query: str, params: list | None = None) -> None:
        with self._lock:
            self._conn.execute(query, params or [])

    def _fetch(self, query: str, params: list | None = None) -> list[dict]:
        """조회 결과를 딕셔너리 목록으로 반환

        타임스탬프 컬럼은 ISO8601 문자열로, 내부 순번 컬럼은 제외한다.
        """
        with self._lock:
            cursor = self._conn.execute(query, params or [])
            columns = [column[0] for column in cursor.description]
            rows = cursor.fetchall()
        records = []
        for row in rows:
            record = dict(zip(columns, row))
            record.pop("seq", None)
            for column in record.keys() & _TIMESTAMP_COLUMNS:
                record[column] = to_iso(record[column])
            records.append(record)
        return records

    def _fetch_one(self, query: str, params: list | None = None) -> dict | None:
        rows = self._fetch(query, params)
        return rows[0] if rows else None

    # ---- patients ----

    def add_patient(
        self,
        full_name: str,
        patient_id: str | None = None,
        national_id: str | None = None,
        room: str | None = None,
    ) -> dict:
        """환자 등록

        Returns:
            저장된 환자 레코드
        """
        patient_id = patient_id or _new_id()
        self._execute(
            "INSERT INTO patients (patient_id, full_name, national_id, room) VALUES (?, ?, ?, ?)",
            [patient_id, full_name, national_id, room],
        )
        return self.get_patient(patient_id)

    def get_patient(self, patient_id: str) -> dict | None:
        """환자 조회"""
        return self._fetch_one("SELECT * FROM patients WHERE patient_id = ?", [patient_id])

    # ---- vitals ----

    def insert_vital(
        self,
        patient_id: str,
        heart_rate: float,
        spo2: float,
        temperature: float,
        source: str,
        is_critical: bool,
        systolic: float | None = None,
        diastolic: float | None = None,
        respiratory_rate: float | None = None,
    ) -> dict:
        """측정값 저장

        Returns:
            저장된 측정값 레코드
        """
        vital_id = _new_id()
        self._execute(
            """
            INSERT INTO vitals (vital_id, patient_id, heart_rate, spo2, temperature, systolic, diastolic, respiratory_rate, source, is_critical, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                vital_id,
                patient_id,
                heart_rate,
                spo2,
                temperature,
                systolic,
                diastolic,
                respiratory_rate,
                source,
                is_critical,
                utc_now(),
            ],
        )
        return self._fetch_one("SELECT * FROM vitals WHERE vital_id = ?", [vital_id])

    def list_vitals(
        self,
        patient_id: str,
        limit: int = 100,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict]:
        """환자 측정값을 최신순으로 조회

        Args:
            patient_id: 환자 식별자
            limit: 최대 건수
            start: 조회 시작 시각(포함)
            end: 조회 종료 시각(포함)

        Returns:
            측정값 목록
        """
        query = "SELECT * FROM vitals WHERE patient_id = ?"
        params: list = [patient_id]
        if start is not None:
            query += " AND created_at >= ?"
            params.append(start)
        if end is not None:
            query += " AND created_at <= ?"
            params.append(end)
        query += " ORDER BY created_at DESC, seq DESC LIMIT ?"
        params.append(limit)
        return self._fetch(query, params)

    def latest_vital(self, patient_id: str) -> dict | None:
        """환자의 최신 측정값 조회"""
        rows = self.list_vitals(patient_id, limit=1)
        return rows[0] if rows else None

    def list_critical_vitals(self, limit: int = 50) -> list[dict]:
        """위급 측정값을 환자 이름과 함께 최신순으로 조회"""
        return self._fetch(
            """
            SELECT v.*, p.full_name AS patient_name, p.national_id AS national_id
            FROM vitals v LEFT JOIN patients p ON v.patient_id = p.patient_id
            WHERE v.is_critical
            ORDER BY v.created_at DESC, v.seq DESC
            LIMIT ?
            """,
            [limit],
        )

    # ---- assignments ----

    def add_assignment(
        self,
        patient_id: str,
        nurse_id: str,
        shift: str,
        doctor_id: str | None = None,
    ) -> dict:
        """간호사/의사 배정 등록"""
        assignment_id = _new_id()
        self._execute(
            """
            INSERT INTO assignments (assignment_id, patient_id, nurse_id, doctor_id, shift, is_active, assigned_at)
            VALUES (?, ?, ?, ?, ?, TRUE, ?)
            """,
            [assignment_id, patient_id, nurse_id, doctor_id, shift, utc_now()],
        )
        return self._fetch_one(
            "SELECT * FROM assignments WHERE assignment_id = ?", [assignment_id]
        )

    def deactivate_assignment(self, assignment_id: str) -> dict | None:
        """배정 비활성화"""
        self._execute(
            "UPDATE assignments SET is_active = FALSE WHERE assignment_id = ?",
            [assignment_id],
        )
        return self._fetch_one(
            "SELECT * FROM assignments WHERE assignment_id = ?", [assignment_id]
        )

    def find_active_assignments(self, patient_id: str) -> list[dict]:
        """환자의 활성 배정을 배정 순서대로 조회

        Raises:
            LookupFailure: 저장소 조회 실패 시
        """
        try:
            return self._fetch(
                """
                SELECT * FROM assignments
                WHERE patient_id = ? AND is_active
                ORDER BY assigned_at, seq
                """,
                [patient_id],
            )
        except duckdb.Error as exc:
            raise LookupFailure("assignments", str(exc)) from exc

    # ---- cases ----

    def open_case(self, patient_id: str, doctor_id: str) -> dict:
        """케이스 개시"""
        case_id = _new_id()
        self._execute(
            """
            INSERT INTO cases (case_id, patient_id, doctor_id, status, patient_status, opened_at, closed_at)
            VALUES (?, ?, ?, 'open', 'stable', ?, NULL)
            """,
            [case_id, patient_id, doctor_id, utc_now()],
        )
        return self._fetch_one("SELECT * FROM cases WHERE case_id = ?", [case_id])

    def close_case(self, case_id: str) -> dict | None:
        """케이스 종료"""
        self._execute(
            "UPDATE cases SET status = 'closed', closed_at = ? WHERE case_id = ?",
            [utc_now(), case_id],
        )
        return self._fetch_one("SELECT * FROM cases WHERE case_id = ?", [case_id])

    def set_patient_status(self, case_id: str, patient_status: str) -> dict | None:
        """의사 지정 환자 상태 변경"""
        self._execute(
            "UPDATE cases SET patient_status = ? WHERE case_id = ?",
            [patient_status, case_id],
        )
        return self._fetch_one("SELECT * FROM cases WHERE case_id = ?", [case_id])

    def find_open_case(self, patient_id: str) -> dict | None:
        """환자의 진행 중 케이스 조회

        Raises:
            LookupFailure: 저장소 조회 실패 시
        """
        try:
            return self._fetch_one(
                """
                SELECT * FROM cases
                WHERE patient_id = ? AND status = 'open'
                ORDER BY opened_at, seq
                LIMIT 1
                """,
                [patient_id],
            )
        except duckdb.Error as exc:
            raise LookupFailure("cases", str(exc)) from exc

    # ---- notifications ----

    def create_notification(
        self,
        user_id: str,
        type: str,
        message: str,
        related_patient_id: str,
        related_vital_id: str | None,
        role: str | None = None,
    ) -> dict:
        """알림 저장

        Raises:
            NotificationWriteFailure: 저장 실패 시
        """
        notification_id = _new_id()
        try:
            self._execute(
                """
                INSERT INTO notifications (notification_id, user_id, role, type, message, is_read, delivered, related_patient_id, related_vital_id, created_at)
                VALUES (?, ?, ?, ?, ?, FALSE, FALSE, ?, ?, ?)
                """,
                [
                    notification_id,
                    user_id,
                    role,
                    type,
                    message,
                    related_patient_id,
                    related_vital_id,
                    utc_now(),
                ],
            )
        except duckdb.Error as exc:
            raise NotificationWriteFailure(user_id, str(exc)) from exc
        return self.get_notification(notification_id)

    def get_notification(self, notification_id: str) -> dict | None:
        """알림 조회"""
        return self._fetch_one(
            "SELECT * FROM notifications WHERE notification_id = ?", [notification_id]
        )

    def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        type: str | None = None,
        limit: int = 50,
    ) -> list[dict]:
        """사용자 알림을 최신순으로 조회"""
        query = """
            SELECT n.*, p.full_name AS patient_name, p.room AS room
            FROM notifications n LEFT JOIN patients p ON n.related_patient_id = p.patient_id
            WHERE n.user_id = ?
        """
        params: list = [user_id]
        if unread_only:
            query += " AND NOT n.is_read"
        if type:
            query += " AND n.type = ?"
            params.append(type)
        query += " ORDER BY n.created_at DESC, n.seq DESC LIMIT ?"
        params.append(limit)
        return self._fetch(query, params)

    def mark_notification_read(self, notification_id: str) -> dict | None:
        """알림 읽음 처리"""
        self._execute(
            "UPDATE notifications SET is_read = TRUE WHERE notification_id = ?",
            [notification_id],
        )
        return self.get_notification(notification_id)

    def list_undelivered_notifications(self, limit: int = 100) -> list[dict]:
        """실시간 푸시 미전송 알림을 오래된 순으로 조회"""
        return self._fetch(
            """
            SELECT * FROM notifications
            WHERE NOT delivered
            ORDER BY created_at, seq
            LIMIT ?
            """,
            [limit],
        )

    def mark_delivered(self, notification_id: str) -> None:
        """실시간 푸시 전송 완료 처리

        Raises:
            NotificationWriteFailure: 저장 실패 시
        """
        try:
            self._execute(
                "UPDATE notifications SET delivered = TRUE WHERE notification_id = ?",
                [notification_id],
            )
        except duckdb.Error as exc:
            raise NotificationWriteFailure(notification_id, str(exc)) from exc


@lru_cache
def get_ward_store() -> WardStore:
    """캐시된 병동 저장소 인스턴스를 반환"""
    return WardStore(get_settings().ward_db_path)
