"""Add uncertain and parse_method audit columns to scan_sessions.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

Records how each classification was obtained (structured JSON, text
fallback, or nothing parsable) and whether it was inconclusive.
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection

    # SQLite doesn't support ADD COLUMN IF NOT EXISTS, so we check manually.
    cursor = raw_conn.execute("PRAGMA table_info(scan_sessions)")
    existing_columns = {row[1] for row in cursor.fetchall()}

    columns_to_add = [
        ("uncertain", "BOOLEAN NOT NULL DEFAULT 0"),
        ("parse_method", "TEXT NOT NULL DEFAULT 'structured'"),
    ]

    for col_name, col_def in columns_to_add:
        if col_name not in existing_columns:
            raw_conn.execute(
                f"ALTER TABLE scan_sessions ADD COLUMN {col_name} {col_def}"
            )


def downgrade() -> None:
    # SQLite can't drop columns on older versions; they are harmless if unused.
    pass
