from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, is_row_referenced
from .model import Class
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _students_of(self, cur, class_id: str) -> frozenset[str]:
        cur.execute("SELECT student FROM class_students WHERE class_id=%s", (class_id,))
        return frozenset(r["student"] for r in fetchall(cur))

    def get(self, class_id: str) -> Optional[Class]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, title, description, lecturer, created_at
                FROM classes
                WHERE class_id=%s
                """,
                (class_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Class(
                class_id=r["class_id"],
                title=r["title"],
                description=r.get("description"),
                lecturer=r["lecturer"],
                students=self._students_of(cur, class_id),
                created_at=r.get("created_at"),
            )

    def create(self, *, class_id: str, title: str, lecturer: str, description: Optional[str] = None) -> Class:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO classes(class_id, title, description, lecturer)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (class_id, title, description, lecturer),
                )
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError(f"Class '{class_id}' already exists") from e
            raise
        created = self.get(class_id)
        if created is None:
            raise NotFoundError("Class not found")
        return created

    def update_details(self, *, class_id: str, title: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE classes SET title=%s, description=%s WHERE class_id=%s",
                (title, description, class_id),
            )
            return cur.rowcount > 0

    def delete(self, class_id: str) -> bool:
        # class_students cascades; attendance_records blocks the delete.
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM classes WHERE class_id=%s", (class_id,))
                return cur.rowcount > 0
        except mysql.connector.IntegrityError as e:
            if is_row_referenced(e):
                raise ConflictError("Class has attendance records and cannot be deleted") from e
            raise

    def add_student(self, *, class_id: str, student: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO class_students(class_id, student) VALUES(%s,%s)",
                (class_id, student),
            )

    def remove_student(self, *, class_id: str, student: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM class_students WHERE class_id=%s AND student=%s",
                (class_id, student),
            )

    def is_enrolled(self, *, class_id: str, student: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS hit FROM class_students WHERE class_id=%s AND student=%s",
                (class_id, student),
            )
            return fetchone(cur) is not None

    def list_for_member(self, address: str) -> Sequence[Class]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT c.class_id, c.title, c.description, c.lecturer, c.created_at
                FROM classes c
                LEFT JOIN class_students cs ON cs.class_id = c.class_id
                WHERE c.lecturer=%s OR cs.student=%s
                ORDER BY c.created_at DESC, c.class_id ASC
                """,
                (address, address),
            )
            rows = fetchall(cur)
            return [
                Class(
                    class_id=r["class_id"],
                    title=r["title"],
                    description=r.get("description"),
                    lecturer=r["lecturer"],
                    students=self._students_of(cur, r["class_id"]),
                    created_at=r.get("created_at"),
                )
                for r in rows
            ]
