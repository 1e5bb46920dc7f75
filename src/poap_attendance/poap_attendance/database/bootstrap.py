from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector

logger = logging.getLogger(__name__)

DEMO_ADMIN = "0x00000000000000000000000000000000000000a1"
DEMO_LECTURER = "0x00000000000000000000000000000000000000b1"
DEMO_STUDENT = "0x00000000000000000000000000000000000000c1"
DEMO_CLASS_ID = "CS101"


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "poap_attendance")),
    )


@contextmanager
def _admin_connection(db_config: dict, *, with_database: bool = True) -> Iterator:
    target = _as_target(db_config)
    kwargs = {
        "host": target.host,
        "port": target.port,
        "user": target.user,
        "password": target.password,
        "use_pure": True,
    }
    if with_database:
        kwargs["database"] = target.database
    conn = mysql.connector.connect(**kwargs)
    try:
        yield conn
    finally:
        conn.close()


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql must work whatever the configured database name is.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quoted strings and `--` line comments."""
    buf: list[str] = []
    quote = ""
    escape = False
    in_comment = False

    for i, ch in enumerate(sql):
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            continue
        if escape:
            buf.append(ch)
            escape = False
            continue
        if quote:
            buf.append(ch)
            if ch == "\\":
                escape = True
            elif ch == quote:
                quote = ""
            continue
        if ch in ("'", '"'):
            quote = ch
            buf.append(ch)
            continue
        if ch == "-" and sql[i : i + 2] == "--":
            in_comment = True
            continue
        if ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    with _admin_connection(db_config) as conn:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    with _admin_connection(db_config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)
    logger.info("Applied schema %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("Applied seed %s", seed_path)


def ensure_demo_accounts(db_config: dict) -> None:
    """Demo admin, lecturer and student, plus class CS101 with the student enrolled."""
    with _admin_connection(db_config) as conn:
        cur = conn.cursor()

        accounts = [
            (DEMO_ADMIN, "Admin Demo", "admin", None, None, 1),
            (DEMO_LECTURER, "Lecturer Demo", "lecturer", None, "Computer Science", 0),
            (DEMO_STUDENT, "Student Demo", "student", "S-0001", None, 0),
        ]
        for address, name, role, student_number, department, is_super_admin in accounts:
            cur.execute(
                """
                INSERT INTO identities (address, name, role, student_number, department, is_super_admin)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE name=VALUES(name), role=VALUES(role)
                """,
                (address, name, role, student_number, department, is_super_admin),
            )

        cur.execute(
            """
            INSERT IGNORE INTO classes (class_id, title, description, lecturer)
            VALUES (%s, %s, %s, %s)
            """,
            (DEMO_CLASS_ID, "Introduction to Computer Science", "Demo class", DEMO_LECTURER),
        )
        cur.execute(
            "INSERT IGNORE INTO class_students (class_id, student) VALUES (%s, %s)",
            (DEMO_CLASS_ID, DEMO_STUDENT),
        )
        conn.commit()


def list_tables(db_config: dict) -> list[str]:
    with _admin_connection(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
