"""Initial schema - locations ledger and scan_sessions audit log.

Revision ID: 001
Revises: None
Create Date: 2026-10-18

Creates core tables: locations, scan_sessions.

Note: uncertain/parse_method audit columns are added in migration 002.
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Complete schema SQL inlined for immutability.
SCHEMA_SQL = """
-- Ledger: one row per normalized address
CREATE TABLE IF NOT EXISTS locations (
    location_key TEXT PRIMARY KEY,
    display_address TEXT NOT NULL,
    points_total INTEGER NOT NULL DEFAULT 0 CHECK (points_total >= 0),
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

-- Append-only audit log of processed scans
CREATE TABLE IF NOT EXISTS scan_sessions (
    id TEXT PRIMARY KEY,
    location_key TEXT NOT NULL,
    material_type TEXT NOT NULL,
    ric_code INTEGER CHECK (ric_code IS NULL OR (ric_code >= 1 AND ric_code <= 7)),
    confidence INTEGER NOT NULL CHECK (confidence >= 0 AND confidence <= 100),
    recyclable BOOLEAN NOT NULL,
    points_awarded INTEGER NOT NULL CHECK (points_awarded >= 0),
    raw_analysis TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMP NOT NULL,
    FOREIGN KEY (location_key) REFERENCES locations(location_key),
    CONSTRAINT chk_material_type CHECK (material_type IN (
        'plastic', 'cardboard', 'paper', 'glass', 'metal', 'aluminum', 'unknown'
    ))
);

-- Indexes for history and ledger audits
CREATE INDEX IF NOT EXISTS idx_scan_sessions_location ON scan_sessions(location_key, created_at);
CREATE INDEX IF NOT EXISTS idx_scan_sessions_material ON scan_sessions(material_type);
"""


def upgrade() -> None:
    # Use raw DBAPI connection for multi-statement SQL
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection
    raw_conn.executescript(SCHEMA_SQL)


def downgrade() -> None:
    conn = op.get_bind()
    raw_conn = conn.connection.dbapi_connection

    raw_conn.execute("DROP INDEX IF EXISTS idx_scan_sessions_material")
    raw_conn.execute("DROP INDEX IF EXISTS idx_scan_sessions_location")

    # Drop tables in reverse dependency order
    for table in ("scan_sessions", "locations"):
        raw_conn.execute(f"DROP TABLE IF EXISTS {table}")
