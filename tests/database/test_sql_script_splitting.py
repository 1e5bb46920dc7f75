from pathlib import Path

from src.poap_attendance.poap_attendance.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_ignores_semicolons_in_quotes_and_comments():
    sql = """
    -- first; comment
    INSERT INTO t VALUES ('a;b');
    INSERT INTO t VALUES ("it\\'s;"); -- trailing; note
    SELECT 1
    """

    assert list(_iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("it\\\'s;")',
        "SELECT 1",
    ]


def test_create_database_and_use_are_stripped():
    sql = "CREATE DATABASE IF NOT EXISTS x;\nUSE x;\nCREATE TABLE a (id INT);\n"
    assert list(_iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE a (id INT)"]


def test_schema_defines_daily_validation_key():
    statements = list(_iter_sql_statements(SCHEMA.read_text(encoding="utf-8")))

    assert len(statements) == 4
    attendance = next(s for s in statements if "attendance_records" in s)
    assert "UNIQUE KEY uq_attendance_validated_day (class_id, student, validated_day)" in attendance
