"""
Memory repositories - agent_preferences and agent_decisions.

Similarity is computed in Postgres with pgvector's cosine distance
operator: ``1 - (embedding <=> $n::vector)``.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..db.repository import Repository

logger = logging.getLogger(__name__)


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _row(record: Any, *json_fields: str) -> Dict[str, Any]:
    row = dict(record)
    for name in json_fields:
        if name in row:
            row[name] = _decode_json(row[name])
    row.pop("embedding", None)
    return row


class PreferenceRepository(Repository):
    TABLE_NAME = "agent_preferences"

    _COLUMNS = (
        "id, user_id, property_id, category, preference_key, preference_value, "
        "source, confidence, created_at, updated_at"
    )

    async def upsert(
        self,
        user_id: str,
        category: str,
        key: str,
        value: Any,
        property_id: Optional[str] = None,
        source: str = "inferred",
        confidence: float = 0.8,
        embedding: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert or overwrite the preference for (user, property, category, key).

        ``value`` is stored wrapped as ``{"value": value}``. ``embedding`` is a
        pgvector literal or None; a None replaces any stale vector.
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO {self.TABLE_NAME}
                (user_id, property_id, category, preference_key, preference_value,
                 source, confidence, embedding)
            VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7, $8::vector)
            ON CONFLICT (user_id, (COALESCE(property_id, '')), category, preference_key)
            DO UPDATE SET
                preference_value = EXCLUDED.preference_value,
                source = EXCLUDED.source,
                confidence = EXCLUDED.confidence,
                embedding = EXCLUDED.embedding,
                updated_at = NOW()
            RETURNING {self._COLUMNS}
            """,
            user_id,
            property_id,
            category,
            key,
            json.dumps({"value": value}, default=str),
            source,
            confidence,
            embedding,
        )
        return _row(row, "preference_value")

    async def search_similar(
        self,
        user_id: str,
        embedding: str,
        threshold: float,
        limit: int,
    ) -> List[Dict[str, Any]]:
        rows = await self._db.fetch(
            f"""
            SELECT {self._COLUMNS},
                   1 - (embedding <=> $2::vector) AS similarity
            FROM {self.TABLE_NAME}
            WHERE user_id = $1
              AND embedding IS NOT NULL
              AND 1 - (embedding <=> $2::vector) > $3
            ORDER BY embedding <=> $2::vector
            LIMIT $4
            """,
            user_id, embedding, threshold, limit,
        )
        return [_row(r, "preference_value") for r in rows]

    async def list_by_category(
        self,
        user_id: str,
        category: Optional[str] = None,
        property_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        """Non-semantic listing, highest confidence first."""
        clauses = ["user_id = $1"]
        args: List[Any] = [user_id]
        if category:
            args.append(category)
            clauses.append(f"category = ${len(args)}")
        if property_id:
            args.append(property_id)
            clauses.append(f"property_id = ${len(args)}")

        rows = await self._fetch_many(
            where=" AND ".join(clauses),
            args=tuple(args),
            order_by="confidence DESC",
            limit=limit,
            columns=self._COLUMNS,
        )
        return [_row(r, "preference_value") for r in rows]


class DecisionRepository(Repository):
    """Read side of the append-only decision log."""

    TABLE_NAME = "agent_decisions"

    _COLUMNS = (
        "id, user_id, decision_type, tool_name, input_data, output_data, reasoning, "
        "confidence, owner_feedback, was_auto_executed, created_at"
    )

    async def search_similar(
        self,
        user_id: str,
        embedding: str,
        threshold: float,
        limit: int,
    ) -> List[Dict[str, Any]]:
        rows = await self._db.fetch(
            f"""
            SELECT {self._COLUMNS},
                   1 - (embedding <=> $2::vector) AS similarity
            FROM {self.TABLE_NAME}
            WHERE user_id = $1
              AND embedding IS NOT NULL
              AND 1 - (embedding <=> $2::vector) > $3
            ORDER BY embedding <=> $2::vector
            LIMIT $4
            """,
            user_id, embedding, threshold, limit,
        )
        return [_row(r, "input_data", "output_data") for r in rows]

    async def list_recent(
        self,
        user_id: str,
        tool_name: Optional[str] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """Auto-executed decisions, newest first."""
        where = "user_id = $1 AND was_auto_executed = TRUE"
        args: List[Any] = [user_id]
        if tool_name:
            args.append(tool_name)
            where += " AND tool_name = $2"

        rows = await self._fetch_many(
            where=where,
            args=tuple(args),
            order_by="created_at DESC",
            limit=limit,
            columns=self._COLUMNS,
        )
        return [_row(r, "input_data", "output_data") for r in rows]
