"""
Semantic Memory - preference recall and decision precedent search.

Both searches try the semantic path first (embed the query, rank stored
vectors by cosine similarity above a threshold). If the embedding backend
is unavailable or fails, or nothing clears the threshold, they fall back
to a deterministic listing and say so in ``search_mode``.

Writes are never blocked by the embedding backend: a preference whose
embedding could not be computed is stored without one.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (
    DEFAULT_PREFERENCE_CONFIDENCE,
    PRECEDENT_LIMIT,
    RECALL_LIMIT,
    SIMILARITY_THRESHOLD,
)
from ..errors import EmbeddingUnavailableError
from .embeddings import EmbeddingService
from .repository import DecisionRepository, PreferenceRepository

logger = logging.getLogger(__name__)

PREFERENCE_SOURCES = ("explicit", "inferred")


class SearchMode(str, Enum):
    SEMANTIC = "semantic"
    CATEGORY = "category"   # recall fallback
    RECENCY = "recency"     # precedent fallback


@dataclass
class MemorySearchResult:
    items: List[Dict[str, Any]] = field(default_factory=list)
    search_mode: SearchMode = SearchMode.SEMANTIC

    @property
    def is_fallback(self) -> bool:
        return self.search_mode != SearchMode.SEMANTIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": self.items,
            "count": len(self.items),
            "search_type": self.search_mode.value,
        }


def split_preference_key(raw_key: str) -> Tuple[str, str]:
    """``tenancy.pets`` -> ("tenancy", "pets"); a key without a dot is both."""
    if "." in raw_key:
        category, key = raw_key.split(".", 1)
        return category, key
    return raw_key, raw_key


class SemanticMemory:
    """
    Actor-scoped preference and precedent memory.

    Usage:
        memory = SemanticMemory(EmbeddingService(backend), PreferenceRepository(db),
                                DecisionRepository(db))
        await memory.remember("owner-1", "maintenance.preferred_plumber", "Bob's Plumbing")
        found = await memory.recall("owner-1", query="who fixes leaks?")
    """

    def __init__(
        self,
        embeddings: EmbeddingService,
        preferences: PreferenceRepository,
        decisions: DecisionRepository,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        recall_limit: int = RECALL_LIMIT,
        precedent_limit: int = PRECEDENT_LIMIT,
        default_confidence: float = DEFAULT_PREFERENCE_CONFIDENCE,
    ):
        self.embeddings = embeddings
        self.preferences = preferences
        self.decisions = decisions
        self.similarity_threshold = similarity_threshold
        self.recall_limit = recall_limit
        self.precedent_limit = precedent_limit
        self.default_confidence = default_confidence

    async def _query_vector(self, query: str) -> Optional[str]:
        """Embed a search query, or None when the semantic path is unavailable."""
        try:
            vector = await self.embeddings.embed(query)
        except EmbeddingUnavailableError as e:
            logger.warning(f"Semantic search unavailable, using fallback: {e}")
            return None
        if not any(vector):
            return None
        return EmbeddingService.format_for_storage(vector)

    async def remember(
        self,
        actor_id: str,
        key: str,
        value: Any,
        scope_id: Optional[str] = None,
        confidence: Optional[float] = None,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store or overwrite a preference (last write wins on the key)."""
        category, pref_key = split_preference_key(key)
        confidence = self.default_confidence if confidence is None else float(confidence)
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Invalid confidence {confidence}: expected a value between 0 and 1")
        source = source or "inferred"
        if source not in PREFERENCE_SOURCES:
            raise ValueError(f"Invalid source '{source}': expected explicit or inferred")

        embedding = None
        try:
            text = EmbeddingService.build_preference_text(category, pref_key, value)
            embedding = EmbeddingService.format_for_storage(await self.embeddings.embed(text))
        except EmbeddingUnavailableError as e:
            logger.warning(f"Storing preference {category}.{pref_key} without embedding: {e}")

        return await self.preferences.upsert(
            user_id=actor_id,
            category=category,
            key=pref_key,
            value=value,
            property_id=scope_id,
            source=source,
            confidence=confidence,
            embedding=embedding,
        )

    async def recall(
        self,
        actor_id: str,
        query: Optional[str] = None,
        category: Optional[str] = None,
        scope_id: Optional[str] = None,
    ) -> MemorySearchResult:
        if query:
            literal = await self._query_vector(query)
            if literal is not None:
                try:
                    rows = await self.preferences.search_similar(
                        actor_id, literal, self.similarity_threshold, self.recall_limit
                    )
                except Exception as e:
                    logger.warning(f"Preference similarity search failed, using fallback: {e}")
                    rows = []
                if category:
                    rows = [r for r in rows if r.get("category") == category]
                if rows:
                    return MemorySearchResult(rows, SearchMode.SEMANTIC)

        rows = await self.preferences.list_by_category(
            actor_id, category=category, property_id=scope_id, limit=self.recall_limit
        )
        return MemorySearchResult(rows, SearchMode.CATEGORY)

    async def search_precedent(
        self,
        actor_id: str,
        query: Optional[str] = None,
        tool_name: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> MemorySearchResult:
        limit = limit or self.precedent_limit
        if query:
            literal = await self._query_vector(query)
            if literal is not None:
                try:
                    rows = await self.decisions.search_similar(
                        actor_id, literal, self.similarity_threshold, limit
                    )
                except Exception as e:
                    logger.warning(f"Decision similarity search failed, using fallback: {e}")
                    rows = []
                if tool_name:
                    rows = [r for r in rows if r.get("tool_name") == tool_name]
                if rows:
                    return MemorySearchResult(rows, SearchMode.SEMANTIC)

        rows = await self.decisions.list_recent(actor_id, tool_name=tool_name, limit=limit)
        return MemorySearchResult(rows, SearchMode.RECENCY)

    async def owner_rules(self, actor_id: str, scope_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Learned rules (category ``rule``), highest confidence first."""
        return await self.preferences.list_by_category(
            actor_id, category="rule", property_id=scope_id, limit=self.recall_limit
        )
