from __future__ import annotations

from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..core.exceptions import ConflictError
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AdminIdentity, Identity, LecturerIdentity, StudentIdentity, build_identity, role_of
from .repository import IdentityRepository

_COLUMNS = "address, name, role, student_number, graduation_date, department, is_super_admin"


def _row_to_identity(r: dict[str, Any]) -> Identity:
    return build_identity(
        address=r["address"],
        name=r["name"],
        role=Role(r["role"]),
        student_number=r.get("student_number"),
        graduation_date=r.get("graduation_date"),
        department=r.get("department"),
        is_super_admin=bool(r.get("is_super_admin") or 0),
    )


def _identity_params(identity: Identity) -> tuple:
    student_number = graduation_date = department = None
    is_super_admin = 0
    if isinstance(identity, StudentIdentity):
        student_number = identity.student_number
        graduation_date = identity.graduation_date
    elif isinstance(identity, LecturerIdentity):
        department = identity.department
    elif isinstance(identity, AdminIdentity):
        is_super_admin = int(identity.is_super_admin)
    return (
        identity.name,
        role_of(identity).value,
        student_number,
        graduation_date,
        department,
        is_super_admin,
    )


class MySQLIdentityRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_address(self, address: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM identities WHERE address=%s", (address,))
            r = fetchone(cur)
            return _row_to_identity(r) if r else None

    def create(self, identity: Identity) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO identities(name, role, student_number, graduation_date, department, is_super_admin, address)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _identity_params(identity) + (identity.address,),
                )
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("Account or student number already exists") from e
            raise

    def replace(self, identity: Identity) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE identities
                    SET name=%s, role=%s, student_number=%s, graduation_date=%s, department=%s, is_super_admin=%s
                    WHERE address=%s
                    """,
                    _identity_params(identity) + (identity.address,),
                )
                return cur.rowcount > 0
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("Student number already in use") from e
            raise

    def delete(self, address: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM identities WHERE address=%s", (address,))
            return cur.rowcount > 0

    def is_referenced(self, address: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    EXISTS(SELECT 1 FROM classes WHERE lecturer=%s) AS lectures,
                    EXISTS(SELECT 1 FROM class_students WHERE student=%s) AS enrolled,
                    EXISTS(SELECT 1 FROM attendance_records WHERE student=%s) AS attended
                """,
                (address, address, address),
            )
            r = fetchone(cur) or {}
            return any(int(r.get(k) or 0) for k in ("lectures", "enrolled", "attended"))

    def list_all(self, *, role: Optional[Role] = None) -> Sequence[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_COLUMNS} FROM identities ORDER BY name ASC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM identities WHERE role=%s ORDER BY name ASC",
                    (role.value,),
                )
            return [_row_to_identity(r) for r in fetchall(cur)]
