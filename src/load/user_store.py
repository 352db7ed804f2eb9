"""
User Store - Load Layer

DuckDB-backed persistence for the sync and enrichment services:
- sync_state: single-row checkpoint slot keyed by name
- users: user records keyed by user_id, plus enrichment columns

One connection is held for the lifetime of a store instance; use it as a
context manager so the database file is released between runs.
"""

import os
import duckdb
import polars as pl
from typing import Any, Dict, List, Mapping, Optional
from ..coreutils.time import utc_now_iso
from ..extract.schemas import ENRICHMENT_COLUMNS, USERS_SCHEMA
import logging

logger = logging.getLogger(__name__)

CHECKPOINT_KEY = "last_synced_user_id"

CREATE_SYNC_STATE_SQL = """
CREATE TABLE IF NOT EXISTS sync_state (
    key VARCHAR PRIMARY KEY,
    value VARCHAR,
    updated_at VARCHAR
)
"""

CREATE_USERS_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id VARCHAR PRIMARY KEY,
    email VARCHAR,
    ip_address VARCHAR,
    identifier_type VARCHAR,
    created_at VARCHAR,
    updated_at VARCHAR,
    ingested_at VARCHAR,
    country_name_official VARCHAR,
    state VARCHAR,
    city VARCHAR,
    district VARCHAR,
    country_code VARCHAR
)
"""


class UserStore:
    """Checkpoint slot plus users table with select/upsert/update primitives"""

    def __init__(self, database: str = ":memory:"):
        if database != ":memory:":
            directory = os.path.dirname(database)
            if directory:
                os.makedirs(directory, exist_ok=True)
        self.database = database
        self.conn = duckdb.connect(database)
        self.ensure_schema()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        self.conn.close()

    def ensure_schema(self) -> None:
        """Create the sync_state and users tables if absent"""
        self.conn.execute(CREATE_SYNC_STATE_SQL)
        self.conn.execute(CREATE_USERS_SQL)

    # ------------------------------------------------------------------
    # Checkpoint
    # ------------------------------------------------------------------

    def get_checkpoint(self, key: str = CHECKPOINT_KEY) -> Optional[str]:
        """Return the stored checkpoint value, or None if never written"""
        row = self.conn.execute(
            "SELECT value FROM sync_state WHERE key = ?", [key]
        ).fetchone()
        if row is None or not row[0]:
            return None
        return row[0]

    def update_checkpoint(self, value: str, key: str = CHECKPOINT_KEY) -> None:
        """Insert or replace the checkpoint value"""
        self.conn.execute(
            """
            INSERT INTO sync_state (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT (key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            [key, value, utc_now_iso()],
        )
        logger.info(f"📌 Checkpoint updated to: {value}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def count_users(self) -> int:
        return self.conn.execute("SELECT count(*) FROM users").fetchone()[0]

    def upsert_users(self, rows: pl.DataFrame) -> int:
        """
        Insert users, ignoring rows whose user_id already exists

        Args:
            rows: Rows matching USERS_SCHEMA

        Returns:
            int: Number of rows that were actually new
        """
        if rows.is_empty():
            return 0

        incoming = rows.select(list(USERS_SCHEMA.names()))
        columns = ", ".join(USERS_SCHEMA.names())

        before = self.count_users()
        self.conn.register("incoming_users", incoming)
        try:
            self.conn.execute(
                f"""
                INSERT INTO users ({columns})
                SELECT {columns} FROM incoming_users
                ON CONFLICT (user_id) DO NOTHING
                """
            )
        finally:
            self.conn.unregister("incoming_users")
        inserted = self.count_users() - before

        logger.debug(f"Upserted {incoming.height} rows, {inserted} new")
        return inserted

    def select_needing_enrichment(self, batch_size: int, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Get users that need enrichment (have null enrichment fields)

        Args:
            batch_size: Maximum number of users to return
            offset: Offset for pagination (no stable ordering)

        Returns:
            List[Dict]: user_id, ip_address and the enrichment columns
        """
        enrichment = ", ".join(ENRICHMENT_COLUMNS)
        any_null = " OR ".join(f"{column} IS NULL" for column in ENRICHMENT_COLUMNS)
        df = self.conn.execute(
            f"""
            SELECT user_id, ip_address, {enrichment}
            FROM users
            WHERE ip_address IS NOT NULL AND ({any_null})
            LIMIT ? OFFSET ?
            """,
            [batch_size, offset],
        ).pl()
        return df.to_dicts()

    def get_enrichment(self, user_id: str) -> Optional[Dict[str, Optional[str]]]:
        """Read the current enrichment columns for one user"""
        enrichment = ", ".join(ENRICHMENT_COLUMNS)
        row = self.conn.execute(
            f"SELECT {enrichment} FROM users WHERE user_id = ?", [user_id]
        ).fetchone()
        if row is None:
            return None
        return dict(zip(ENRICHMENT_COLUMNS, row))

    def update_enrichment(self, user_id: str, updates: Mapping[str, str]) -> None:
        """Write the given enrichment columns for one user"""
        unknown = set(updates) - set(ENRICHMENT_COLUMNS)
        if unknown:
            raise ValueError(f"Not enrichment columns: {sorted(unknown)}")
        if not updates:
            return

        assignments = ", ".join(f"{column} = ?" for column in updates)
        self.conn.execute(
            f"UPDATE users SET {assignments} WHERE user_id = ?",
            [*updates.values(), user_id],
        )

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        df = self.conn.execute("SELECT * FROM users WHERE user_id = ?", [user_id]).pl()
        rows = df.to_dicts()
        return rows[0] if rows else None
