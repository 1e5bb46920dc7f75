from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.exceptions import AlreadyValidatedError, InvalidStateError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, class_id, student, marked_at, validated, validated_at, badge_ref"


def _row_to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        class_id=r["class_id"],
        student=r["student"],
        marked_at=r.get("marked_at"),
        validated=bool(r["validated"]),
        validated_at=r.get("validated_at"),
        badge_ref=r.get("badge_ref"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """attendance_records carries a stored `validated_day` column (NULL while
    unvalidated) under UNIQUE(class_id, student, validated_day); that key is
    what makes concurrent validations for the same day collide.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _already_validated(self, *, class_id: str, student: str, day: date, cause: Exception) -> AlreadyValidatedError:
        existing = self.find_validated_on_day(class_id=class_id, student=student, day=day)
        if not existing or existing.validated_at is None:
            raise cause
        return AlreadyValidatedError(existing.validated_at)

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create_mark(self, *, class_id: str, student: str, marked_at: datetime) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(class_id, student, marked_at, validated)
                VALUES(%s,%s,%s,0)
                """,
                (class_id, student, marked_at),
            )
            attendance_id = int(cur.lastrowid)
        return AttendanceRecord(
            attendance_id=attendance_id,
            class_id=class_id,
            student=student,
            marked_at=marked_at,
        )

    def create_validated(self, *, class_id: str, student: str, validated_at: datetime) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(class_id, student, marked_at, validated, validated_at)
                    VALUES(%s,%s,%s,1,%s)
                    """,
                    (class_id, student, validated_at, validated_at),
                )
                attendance_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if not is_duplicate_key(e):
                raise
            raise self._already_validated(class_id=class_id, student=student, day=validated_at.date(), cause=e) from e

        return AttendanceRecord(
            attendance_id=attendance_id,
            class_id=class_id,
            student=student,
            marked_at=validated_at,
            validated=True,
            validated_at=validated_at,
        )

    def find_latest_pending(self, *, class_id: str, student: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND student=%s AND validated=0
                ORDER BY marked_at DESC, attendance_id DESC
                LIMIT 1
                """,
                (class_id, student),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def find_validated_on_day(self, *, class_id: str, student: str, day: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND student=%s AND validated_day=%s
                """,
                (class_id, student, day),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def mark_validated(self, *, attendance_id: int, validated_at: datetime) -> AttendanceRecord:
        current = self.get(attendance_id)
        if not current:
            raise NotFoundError("Attendance record not found")

        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET validated=1, validated_at=%s
                    WHERE attendance_id=%s AND validated=0
                    """,
                    (validated_at, int(attendance_id)),
                )
                changed = cur.rowcount > 0
        except mysql.connector.IntegrityError as e:
            if not is_duplicate_key(e):
                raise
            raise self._already_validated(
                class_id=current.class_id, student=current.student, day=validated_at.date(), cause=e
            ) from e

        if not changed:
            raise InvalidStateError(f"Attendance record {attendance_id} is already validated")

        return AttendanceRecord(
            attendance_id=current.attendance_id,
            class_id=current.class_id,
            student=current.student,
            marked_at=current.marked_at,
            validated=True,
            validated_at=validated_at,
        )

    def set_badge_ref(self, *, attendance_id: int, badge_ref: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET badge_ref=%s
                WHERE attendance_id=%s AND validated=1 AND badge_ref IS NULL
                """,
                (badge_ref, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_for_class(self, *, class_id: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s
                ORDER BY COALESCE(validated_at, marked_at) DESC, attendance_id DESC
                LIMIT %s
                """,
                (class_id, int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, *, student: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student=%s
                ORDER BY COALESCE(validated_at, marked_at) DESC, attendance_id DESC
                LIMIT %s
                """,
                (student, int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_by_class_for_student(self, *, student: str) -> dict[str, tuple[int, int, int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id,
                       COUNT(*) AS total,
                       COUNT(marked_at) AS attended,
                       COALESCE(SUM(validated), 0) AS validated
                FROM attendance_records
                WHERE student=%s
                GROUP BY class_id
                """,
                (student,),
            )
            return {
                r["class_id"]: (int(r["total"]), int(r["attended"]), int(r["validated"]))
                for r in fetchall(cur)
            }

    def list_badged_for_student(self, *, student: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student=%s AND badge_ref IS NOT NULL
                ORDER BY validated_at DESC, attendance_id DESC
                """,
                (student,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_missing_badges(self, *, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE validated=1 AND badge_ref IS NULL
                ORDER BY validated_at ASC, attendance_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
