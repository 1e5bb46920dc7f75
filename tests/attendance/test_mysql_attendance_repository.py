from __future__ import annotations

from datetime import datetime

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.poap_attendance.poap_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.poap_attendance.poap_attendance.core.exceptions import (
    AlreadyValidatedError,
    InvalidStateError,
    NotFoundError,
)

STUDENT = "0x00000000000000000000000000000000000000c1"
EARLIER = datetime(2026, 3, 2, 8, 15)
NOW = datetime(2026, 3, 2, 9, 0)


def _row(attendance_id, *, validated=False, validated_at=None):
    return {
        "attendance_id": attendance_id,
        "class_id": "CS101",
        "student": STUDENT,
        "marked_at": datetime(2026, 3, 2, 8, 0),
        "validated": int(validated),
        "validated_at": validated_at,
        "badge_ref": None,
    }


def _fail_on(keyword, error):
    def execute(sql, params=None):
        if keyword in sql:
            raise error

    return execute


def _dup_key():
    return mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)


def test_create_validated_duplicate_day_reports_existing_validation(mysql_conn):
    mysql_conn.cursor.execute.side_effect = _fail_on("INSERT INTO attendance_records", _dup_key())
    mysql_conn.cursor.fetchone.return_value = _row(7, validated=True, validated_at=EARLIER)

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(AlreadyValidatedError) as exc:
        repo.create_validated(class_id="CS101", student=STUDENT, validated_at=NOW)

    assert exc.value.validated_at == EARLIER
    mysql_conn.conn.rollback.assert_called()


def test_create_validated_other_integrity_errors_propagate(mysql_conn):
    error = mysql.connector.IntegrityError(msg="fk", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    mysql_conn.cursor.execute.side_effect = _fail_on("INSERT INTO attendance_records", error)

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(mysql.connector.IntegrityError) as exc:
        repo.create_validated(class_id="CS101", student=STUDENT, validated_at=NOW)

    assert exc.value.errno == errorcode.ER_NO_REFERENCED_ROW_2


def test_create_validated_duplicate_without_visible_winner_propagates(mysql_conn):
    mysql_conn.cursor.execute.side_effect = _fail_on("INSERT INTO attendance_records", _dup_key())

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(mysql.connector.IntegrityError):
        repo.create_validated(class_id="CS101", student=STUDENT, validated_at=NOW)


def test_mark_validated_missing_record(mysql_conn):
    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(NotFoundError):
        repo.mark_validated(attendance_id=3, validated_at=NOW)


def test_mark_validated_updates_only_unvalidated_rows(mysql_conn):
    mysql_conn.cursor.fetchone.return_value = _row(3)
    mysql_conn.cursor.rowcount = 1

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    record = repo.mark_validated(attendance_id=3, validated_at=NOW)

    assert record.validated is True
    assert record.validated_at == NOW
    update_sql, params = mysql_conn.cursor.execute.call_args_list[-1].args
    assert "WHERE attendance_id=%s AND validated=0" in update_sql
    assert params == (NOW, 3)


def test_mark_validated_no_rows_changed_is_invalid_state(mysql_conn):
    mysql_conn.cursor.fetchone.return_value = _row(3)
    mysql_conn.cursor.rowcount = 0

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(InvalidStateError):
        repo.mark_validated(attendance_id=3, validated_at=NOW)


def test_mark_validated_duplicate_day_reports_existing_validation(mysql_conn):
    mysql_conn.cursor.execute.side_effect = _fail_on("UPDATE attendance_records", _dup_key())
    mysql_conn.cursor.fetchone.side_effect = [_row(3), _row(2, validated=True, validated_at=EARLIER)]

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    with pytest.raises(AlreadyValidatedError) as exc:
        repo.mark_validated(attendance_id=3, validated_at=NOW)

    assert exc.value.validated_at == EARLIER
    mysql_conn.conn.rollback.assert_called_once()


def test_student_counts_are_grouped_in_sql(mysql_conn):
    mysql_conn.cursor.fetchall.return_value = [
        {"class_id": "CS101", "total": 250, "attended": 250, "validated": 3},
    ]

    repo = MySQLAttendanceRepository(mysql_conn.factory)
    counts = repo.count_by_class_for_student(student=STUDENT)

    assert counts == {"CS101": (250, 250, 3)}
    sql = mysql_conn.cursor.execute.call_args.args[0]
    assert "GROUP BY class_id" in sql
    assert "LIMIT" not in sql
