"""
PropValet Repository - Base class for domain-specific data access.

Each domain creates a subclass that defines:
- TABLE_NAME: the table it reads or owns
- Domain-specific query methods

Every query that touches business data must be scoped to the acting user
(owner_id / tenant_id / user_id). A row that exists but belongs to someone
else is indistinguishable from a row that does not exist.

Usage:
    class PropertyRepository(Repository):
        TABLE_NAME = "properties"

        async def get_owned(self, property_id: str, owner_id: str) -> dict | None:
            return await self._fetch_one(
                "id = $1 AND owner_id = $2", (property_id, owner_id)
            )
"""

from typing import Any, Dict, List, Optional


class Repository:
    """
    Base class for domain data access.

    Subclasses define TABLE_NAME and domain methods.
    """

    TABLE_NAME: str = ""

    def __init__(self, db: "Database"):
        self._db = db

    @property
    def db(self) -> "Database":
        return self._db

    # -- Generic helpers (subclasses can use or ignore) --

    async def _fetch_one(
        self,
        where: str,
        args: tuple = (),
        columns: str = "*",
    ) -> Optional[Dict[str, Any]]:
        """Fetch a single row matching WHERE, or None."""
        query = f"SELECT {columns} FROM {self.TABLE_NAME} WHERE {where} LIMIT 1"
        row = await self._db.fetchrow(query, *args)
        return dict(row) if row else None

    async def _fetch_many(
        self,
        where: str = "",
        args: tuple = (),
        order_by: str = "",
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Fetch multiple rows with optional WHERE, ORDER BY, LIMIT."""
        query = f"SELECT {columns} FROM {self.TABLE_NAME}"
        if where:
            query += f" WHERE {where}"
        if order_by:
            query += f" ORDER BY {order_by}"
        if limit:
            query += f" LIMIT {int(limit)}"

        rows = await self._db.fetch(query, *args)
        return [dict(r) for r in rows]
