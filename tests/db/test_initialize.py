"""Tests for the memory schema migrations."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from propvalet.db.initialize import MIGRATIONS, ensure_schema


def _make_db(current_version):
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.fetchrow = AsyncMock(return_value={"v": current_version})
    db = MagicMock()
    db.pool.acquire.return_value.__aenter__.return_value = conn
    return db, conn


class TestMigrations:

    def test_versions_ascend(self):
        versions = [v for v, _, _ in MIGRATIONS]
        assert versions == sorted(versions)
        assert len(set(versions)) == len(versions)

    def test_memory_tables_created(self):
        sql = " ".join(s for _, _, s in MIGRATIONS)
        assert "agent_preferences" in sql
        assert "agent_decisions" in sql
        assert "vector(384)" in sql


class TestEnsureSchema:

    @pytest.mark.asyncio
    async def test_applies_pending(self):
        db, conn = _make_db(0)

        await ensure_schema(db)

        inserts = [c for c in conn.execute.call_args_list if "INSERT INTO schema_version" in c.args[0]]
        assert len(inserts) == len(MIGRATIONS)
        assert "pg_advisory_unlock" in conn.execute.call_args_list[-1].args[0]

    @pytest.mark.asyncio
    async def test_up_to_date(self):
        db, conn = _make_db(MIGRATIONS[-1][0])

        await ensure_schema(db)

        assert not any("INSERT INTO schema_version" in c.args[0] for c in conn.execute.call_args_list)
        assert "pg_advisory_unlock" in conn.execute.call_args_list[-1].args[0]
