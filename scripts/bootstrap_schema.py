#!/usr/bin/env python3
"""
Create the Ethereal Nexus schema on an empty Postgres database.

Creates the tracking-id sequence and generator, every table and enum declared
in models/, the role helper functions and the row-level-security policies.
Safe to re-run: every statement is idempotent.

Usage:
  python3 scripts/bootstrap_schema.py
  python3 scripts/bootstrap_schema.py --dry-run      # print the SQL only

The connection comes from DATABASE_URL or DATABASE_HOST/PORT/USER/PASSWORD/NAME.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List

from dotenv import load_dotenv
from sqlalchemy import text

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

load_dotenv()

from libs.db import engine  # noqa: E402
from models import audit, complaint, feedback, organisation, user_models  # noqa: E402,F401
from models.base import Base  # noqa: E402

logger = logging.getLogger("bootstrap_schema")

# Must exist before the complaints table, whose tracking_id default calls it
TRACKING_ID_SQL: List[str] = [
    "CREATE SEQUENCE IF NOT EXISTS complaint_tracking_seq",
    """
    CREATE OR REPLACE FUNCTION generate_tracking_id() RETURNS text
    LANGUAGE sql VOLATILE AS $$
        SELECT 'EN-' || to_char(now(), 'YYYY') || '-'
               || lpad(nextval('complaint_tracking_seq')::text, 5, '0')
    $$
    """,
]

ROLE_FUNCTIONS_SQL: List[str] = [
    """
    CREATE OR REPLACE FUNCTION has_role(_user_id uuid, _role app_role) RETURNS boolean
    LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public AS $$
        SELECT EXISTS (
            SELECT 1 FROM user_roles WHERE user_id = _user_id AND role = _role
        )
    $$
    """,
    """
    CREATE OR REPLACE FUNCTION is_admin(_user_id uuid) RETURNS boolean
    LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public AS $$
        SELECT EXISTS (
            SELECT 1 FROM user_roles
            WHERE user_id = _user_id
              AND role IN ('admin', 'ombudsperson', 'department_officer')
        )
    $$
    """,
]

# (table, policy name, command, USING / WITH CHECK expression)
POLICIES = [
    ("complaints", "students_insert_own", "INSERT", "WITH CHECK (auth.uid() = submitter_user_id)"),
    ("complaints", "students_read_own", "SELECT", "USING (auth.uid() = submitter_user_id)"),
    ("complaints", "admins_read_all", "SELECT", "USING (is_admin(auth.uid()))"),
    ("complaints", "admins_update_all", "UPDATE", "USING (is_admin(auth.uid()))"),
    ("profiles", "users_read_own_profile", "SELECT", "USING (auth.uid() = id)"),
    ("profiles", "users_update_own_profile", "UPDATE", "USING (auth.uid() = id)"),
    ("students", "students_insert_own_row", "INSERT", "WITH CHECK (auth.uid() = user_id)"),
    ("students", "students_read_own_row", "SELECT", "USING (auth.uid() = user_id)"),
    ("user_roles", "users_read_own_roles", "SELECT", "USING (auth.uid() = user_id)"),
    ("user_roles", "admins_manage_roles", "ALL", "USING (is_admin(auth.uid()))"),
    ("audit_logs", "admins_read_audit", "SELECT", "USING (is_admin(auth.uid()))"),
    ("feedback", "admins_read_feedback", "SELECT", "USING (is_admin(auth.uid()))"),
    ("departments", "anyone_reads_departments", "SELECT", "USING (true)"),
]


def policy_statements() -> List[str]:
    statements = []
    for table in sorted({p[0] for p in POLICIES}):
        statements.append(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
    for table, name, command, clause in POLICIES:
        statements.append(f"DROP POLICY IF EXISTS {name} ON {table}")
        statements.append(f"CREATE POLICY {name} ON {table} FOR {command} {clause}")
    return statements


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the Ethereal Nexus schema")
    parser.add_argument("--dry-run", action="store_true", help="Print the SQL without running it")
    parser.add_argument(
        "--skip-policies",
        action="store_true",
        help="Skip row-level security (databases without an auth schema)",
    )
    return parser.parse_args()


async def bootstrap(skip_policies: bool) -> None:
    async with engine.begin() as conn:
        for stmt in TRACKING_ID_SQL:
            await conn.execute(text(stmt))
        await conn.run_sync(Base.metadata.create_all)
        for stmt in ROLE_FUNCTIONS_SQL:
            await conn.execute(text(stmt))
        if not skip_policies:
            for stmt in policy_statements():
                await conn.execute(text(stmt))
    await engine.dispose()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if args.dry_run:
        for stmt in TRACKING_ID_SQL + ROLE_FUNCTIONS_SQL + policy_statements():
            print(stmt.strip() + ";")
        return 0

    asyncio.run(bootstrap(args.skip_policies))
    logger.info("Schema ready (%d tables)", len(Base.metadata.tables))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
