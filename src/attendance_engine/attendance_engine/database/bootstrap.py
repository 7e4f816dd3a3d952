from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted strings."""
    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue
        if ch == "\\":
            buf.append(ch)
            escape = True
            continue
        if ch in ("'", '"'):
            if not quote:
                quote = ch
            elif quote == ch:
                quote = ""
            buf.append(ch)
            continue
        if ch == ";" and not quote:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("schema applied from %s", schema_path)


def ensure_demo_data(db_config: dict) -> None:
    """Seed a default shift, one department and three demo logins if missing."""
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT config_id FROM shift_configs WHERE is_active=1 LIMIT 1")
        if not cur.fetchone():
            cur.execute(
                """
                INSERT INTO shift_configs(check_in_time, check_out_time, working_days, timezone)
                VALUES('09:00:00', '18:00:00', '0,1,2,3,4', 'Asia/Kolkata')
                """
            )
            cur.execute(
                """
                INSERT INTO break_windows(config_id, name, start_time, end_time, sort_order)
                VALUES(%s, 'Lunch', '13:00:00', '13:30:00', 0)
                """,
                (int(cur.lastrowid),),
            )

        cur.execute("INSERT IGNORE INTO departments(dept_name) VALUES('Engineering')")
        cur.execute("SELECT dept_id FROM departments WHERE dept_name='Engineering'")
        dept_id = int(cur.fetchone()["dept_id"])

        def upsert(full_name: str, username: str, password: str, role: str, manager_id=None) -> int:
            cur.execute("SELECT employee_id FROM employees WHERE username=%s", (username,))
            row = cur.fetchone()
            if row:
                return int(row["employee_id"])
            cur.execute(
                """
                INSERT INTO employees(full_name, username, password_hash, role, dept_id, reporting_manager_id, join_date)
                VALUES(%s, %s, %s, %s, %s, %s, CURRENT_DATE)
                """,
                (full_name, username, generate_password_hash(password), role, dept_id, manager_id),
            )
            return int(cur.lastrowid)

        upsert("HR Admin", "admin", "admin123", "admin")
        manager_id = upsert("Team Manager", "manager", "manager123", "manager")
        upsert("Demo Employee", "employee", "employee123", "employee", manager_id)
        cur.execute("INSERT IGNORE INTO department_heads(dept_id, employee_id) VALUES(%s, %s)", (dept_id, manager_id))

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
