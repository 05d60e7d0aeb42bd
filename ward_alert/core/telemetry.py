from __future__ import annotations

import threading
from pathlib import Path

import duckdb

from ward_alert.core.config import get_settings


class TelemetryStore:
    """로그와 환자별 알림 상태를 저장하는 DuckDB 텔레메트리 저장소"""

    _instance: "TelemetryStore | None" = None

    def __new__(cls) -> "TelemetryStore":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_db()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """싱글턴 연결을 닫고 초기화"""
        if cls._instance is not None:
            cls._instance._conn.close()
        cls._instance = None

    def _init_db(self) -> None:
        settings = get_settings()
        Path(settings.duckdb_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(settings.duckdb_path)
        self._lock = threading.Lock()
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                timestamp TIMESTAMP,
                level VARCHAR,
                event VARCHAR,
                patient_id VARCHAR,
                stage VARCHAR,
                error_code VARCHAR,
                message VARCHAR,
                duration_ms INTEGER,
                record_count INTEGER
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS alert_status (
                patient_id VARCHAR,
                last_alert_at TIMESTAMP,
                last_status VARCHAR,
                last_error_code VARCHAR,
                target_count INTEGER,
                failed_count INTEGER
            )
            """
        )

    def insert_log(self, record: dict) -> None:
        """로그 레코드를 저장

        Args:
            record: 로그 레코드 딕셔너리
        """
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO logs (timestamp, level, event, patient_id, stage, error_code, message, duration_ms, record_count)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    record.get("timestamp"),
                    record.get("level"),
                    record.get("event"),
                    record.get("patient_id"),
                    record.get("stage"),
                    record.get("error_code"),
                    record.get("message"),
                    record.get("duration_ms"),
                    record.get("record_count"),
                ],
            )

    def update_alert_status(self, status: dict) -> None:
        """환자 알림 상태 레코드를 업서트

        Args:
            status: 상태 레코드 딕셔너리
        """
        with self._lock:
            self._write_alert_status(status)

    def _write_alert_status(self, status: dict) -> None:
        self._conn.execute(
            "DELETE FROM alert_status WHERE patient_id = ?",
            [status.get("patient_id")],
        )
        self._conn.execute(
            """
            INSERT INTO alert_status (patient_id, last_alert_at, last_status, last_error_code, target_count, failed_count)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                status.get("patient_id"),
                status.get("last_alert_at"),
                status.get("last_status"),
                status.get("last_error_code"),
                status.get("target_count"),
                status.get("failed_count"),
            ],
        )

    def query_logs(self, where: str, params: list) -> list[tuple]:
        """조건절(WHERE)을 사용해 로그를 조회

        Args:
            where: SQL WHERE 절
            params: 파라미터 목록

        Returns:
            행 목록
        """
        query = "SELECT * FROM logs"
        if where:
            query += f" WHERE {where}"
        query += " ORDER BY \"timestamp\""
        with self._lock:
            return self._conn.execute(query, params).fetchall()

    def query_alert_status(self) -> list[tuple]:
        """모든 환자 알림 상태 항목을 조회

        Returns:
            행 목록
        """
        with self._lock:
            return self._conn.execute(
                "SELECT * FROM alert_status ORDER BY patient_id"
            ).fetchall()
