"""
PropValet Database Schema Management.

Only the tables this package owns are migrated here (agent memory).
Business tables (properties, tenancies, trades, work orders, arrears) belong
to the property-management datastore and are read, never created.

Lightweight migration system:
- Tracks current schema version in a `schema_version` table
- Only runs migrations that haven't been applied yet
- Each migration is a (version, description, SQL) tuple
- Safe for concurrent startup (uses advisory lock)

Usage:
    db = Database(dsn="postgresql://...")
    await db.initialize()
    await ensure_schema(db)
"""

import logging
from typing import List, Tuple

from .database import Database

logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────
# Migration registry
#
# Append-only. Never modify or delete existing entries.
# Each entry: (version, description, sql)
# ──────────────────────────────────────────────────────────────
MIGRATIONS: List[Tuple[int, str, str]] = [
    (
        1,
        "Enable pgvector",
        """
        CREATE EXTENSION IF NOT EXISTS vector;
        """,
    ),
    (
        2,
        "Create agent_preferences table",
        """
        CREATE TABLE IF NOT EXISTS agent_preferences (
            id               UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id          TEXT NOT NULL,
            property_id      TEXT,
            category         TEXT NOT NULL,
            preference_key   TEXT NOT NULL,
            preference_value JSONB NOT NULL,
            source           TEXT NOT NULL DEFAULT 'inferred'
                             CHECK (source IN ('explicit', 'inferred')),
            confidence       REAL NOT NULL DEFAULT 0.8
                             CHECK (confidence >= 0 AND confidence <= 1),
            embedding        vector(384),
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE UNIQUE INDEX IF NOT EXISTS agent_preferences_key_idx
            ON agent_preferences (user_id, COALESCE(property_id, ''), category, preference_key);
        """,
    ),
    (
        3,
        "Create agent_decisions table",
        """
        CREATE TABLE IF NOT EXISTS agent_decisions (
            id                UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id           TEXT NOT NULL,
            decision_type     TEXT,
            tool_name         TEXT NOT NULL,
            input_data        JSONB,
            output_data       JSONB,
            reasoning         TEXT,
            confidence        REAL,
            owner_feedback    TEXT,
            embedding         vector(384),
            was_auto_executed BOOLEAN NOT NULL DEFAULT FALSE,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS agent_decisions_user_created_idx
            ON agent_decisions (user_id, created_at DESC);
        """,
    ),
]


# ──────────────────────────────────────────────────────────────
# Schema management
# ──────────────────────────────────────────────────────────────

_BOOTSTRAP_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    description TEXT NOT NULL,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

# PostgreSQL advisory lock ID (arbitrary constant, unique to this app)
_LOCK_ID = 7_2658_2002


async def ensure_schema(db: Database) -> None:
    """Apply any pending migrations.

    - Creates the ``schema_version`` tracking table if needed
    - Uses a PostgreSQL advisory lock to prevent concurrent migration runs
    - Skips migrations that have already been applied
    - Each migration runs in its own transaction

    Args:
        db: Initialized Database instance.
    """
    async with db.pool.acquire() as conn:
        await conn.execute("SELECT pg_advisory_lock($1)", _LOCK_ID)
        try:
            await conn.execute(_BOOTSTRAP_SQL)

            row = await conn.fetchrow(
                "SELECT COALESCE(MAX(version), 0) AS v FROM schema_version"
            )
            current = row["v"]

            pending = [(v, d, s) for v, d, s in MIGRATIONS if v > current]
            if not pending:
                logger.debug(f"Schema up to date (version {current})")
                return

            for version, description, sql in pending:
                async with conn.transaction():
                    await conn.execute(sql)
                    await conn.execute(
                        "INSERT INTO schema_version (version, description) VALUES ($1, $2)",
                        version,
                        description,
                    )
                logger.info(f"Migration {version}: {description}")

            logger.info(
                f"Schema migrated {current} -> {pending[-1][0]} "
                f"({len(pending)} migration(s))"
            )
        finally:
            await conn.execute("SELECT pg_advisory_unlock($1)", _LOCK_ID)
