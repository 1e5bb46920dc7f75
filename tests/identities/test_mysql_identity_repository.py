from __future__ import annotations

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.poap_attendance.poap_attendance.core.exceptions import ConflictError
from src.poap_attendance.poap_attendance.identities.model import StudentIdentity
from src.poap_attendance.poap_attendance.identities.mysql_identity_repository import MySQLIdentityRepository

STUDENT = StudentIdentity(address="0x00000000000000000000000000000000000000c1", name="Student", student_number="S-2")


def test_replace_with_taken_student_number_is_conflict(mysql_conn):
    mysql_conn.cursor.execute.side_effect = mysql.connector.IntegrityError(
        msg="Duplicate entry 'S-2'", errno=errorcode.ER_DUP_ENTRY
    )

    with pytest.raises(ConflictError):
        MySQLIdentityRepository(mysql_conn.factory).replace(STUDENT)


def test_replace_writes_role_specific_columns(mysql_conn):
    mysql_conn.cursor.rowcount = 1

    assert MySQLIdentityRepository(mysql_conn.factory).replace(STUDENT) is True

    params = mysql_conn.cursor.execute.call_args.args[1]
    assert params == ("Student", "student", "S-2", None, None, 0, STUDENT.address)
