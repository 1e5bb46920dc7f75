from __future__ import annotations

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.poap_attendance.poap_attendance.classes.mysql_class_repository import MySQLClassRepository
from src.poap_attendance.poap_attendance.core.exceptions import ConflictError


def test_delete_referenced_class_is_conflict(mysql_conn):
    mysql_conn.cursor.execute.side_effect = mysql.connector.IntegrityError(
        msg="Cannot delete or update a parent row", errno=errorcode.ER_ROW_IS_REFERENCED_2
    )

    with pytest.raises(ConflictError):
        MySQLClassRepository(mysql_conn.factory).delete("CS101")
    mysql_conn.conn.rollback.assert_called_once()


def test_delete_reports_whether_a_row_was_removed(mysql_conn):
    mysql_conn.cursor.rowcount = 0
    assert MySQLClassRepository(mysql_conn.factory).delete("NOPE") is False

    mysql_conn.cursor.rowcount = 1
    assert MySQLClassRepository(mysql_conn.factory).delete("CS101") is True


def test_create_duplicate_class_is_conflict(mysql_conn):
    mysql_conn.cursor.execute.side_effect = mysql.connector.IntegrityError(
        msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY
    )

    with pytest.raises(ConflictError):
        MySQLClassRepository(mysql_conn.factory).create(class_id="CS101", title="Intro", lecturer="0xabc")
