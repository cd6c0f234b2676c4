"""
Embedding Service - text to fixed-length, L2-normalized vectors.

The backend is optional. Without one (or when it errors) ``embed`` raises
EmbeddingUnavailableError and callers fall back to non-semantic search.
Blank text never reaches the backend: it embeds to the zero vector.

Because every stored vector is unit length, cosine similarity is a plain
dot product.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from ..constants import (
    DECISION_INPUT_SNIPPET_CHARS,
    EMBEDDING_DIMENSIONS,
    EMBEDDING_MAX_CHARS,
    PREFERENCE_TEXT_MAX_CHARS,
)
from ..errors import EmbeddingUnavailableError

logger = logging.getLogger(__name__)

Vector = List[float]


class EmbeddingBackend(Protocol):
    """Anything that turns text into vectors.

    ``run`` takes one string or a list of strings and returns one vector or
    a list of vectors respectively.
    """

    async def run(
        self,
        text_or_batch: Union[str, Sequence[str]],
        mean_pool: bool = True,
        normalize: bool = True,
    ) -> Union[Vector, List[Vector]]:
        ...


def l2_normalize(vector: Sequence[float]) -> Vector:
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return [0.0] * len(vector)
    return [v / norm for v in vector]


class OpenAIEmbeddingBackend:
    """OpenAI-compatible ``embeddings.create`` backend.

    The API returns already-pooled sentence embeddings, so ``mean_pool`` has
    nothing left to do here.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: Optional[str] = None,
        dimensions: int = EMBEDDING_DIMENSIONS,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url or None
        self.dimensions = dimensions
        self._client = None

    def _get_client(self):
        """Get or create the OpenAI client"""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def run(
        self,
        text_or_batch: Union[str, Sequence[str]],
        mean_pool: bool = True,
        normalize: bool = True,
    ) -> Union[Vector, List[Vector]]:
        single = isinstance(text_or_batch, str)
        inputs = [text_or_batch] if single else list(text_or_batch)

        client = self._get_client()
        response = await client.embeddings.create(
            model=self.model,
            input=inputs,
            dimensions=self.dimensions,
        )
        vectors = [list(item.embedding) for item in response.data]
        if normalize:
            vectors = [l2_normalize(v) for v in vectors]
        return vectors[0] if single else vectors


class EmbeddingService:
    """
    Embeds text for semantic memory.

    Usage:
        service = EmbeddingService(OpenAIEmbeddingBackend(api_key=...))
        vec = await service.embed("prefers email over phone")
        score = EmbeddingService.similarity(vec, other)
    """

    def __init__(
        self,
        backend: Optional[EmbeddingBackend] = None,
        dimensions: int = EMBEDDING_DIMENSIONS,
        max_chars: int = EMBEDDING_MAX_CHARS,
    ):
        self._backend = backend
        self.dimensions = dimensions
        self.max_chars = max_chars

    @property
    def available(self) -> bool:
        return self._backend is not None

    def zero_vector(self) -> Vector:
        return [0.0] * self.dimensions

    async def embed(self, text: str) -> Vector:
        """Embed one text. Blank text gives the zero vector.

        Raises:
            EmbeddingUnavailableError: no backend, backend error, or a
                vector of the wrong dimension came back
        """
        cleaned = (text or "").strip()
        if not cleaned:
            return self.zero_vector()
        if self._backend is None:
            raise EmbeddingUnavailableError("No embedding backend configured")

        truncated = cleaned[: self.max_chars]
        try:
            raw = await self._backend.run(truncated, mean_pool=True, normalize=True)
        except Exception as e:
            raise EmbeddingUnavailableError(f"Embedding backend failed: {e}") from e

        vector = [float(v) for v in raw]
        if len(vector) != self.dimensions:
            raise EmbeddingUnavailableError(
                f"Embedding backend returned {len(vector)} dimensions, expected {self.dimensions}"
            )
        return l2_normalize(vector)

    async def embed_batch(self, texts: Sequence[str]) -> List[Vector]:
        """Embed several texts, one backend call at a time."""
        results = []
        for text in texts:
            results.append(await self.embed(text))
        return results

    @staticmethod
    def similarity(a: Sequence[float], b: Sequence[float]) -> float:
        """Dot product of two normalized vectors; 0.0 on length mismatch or empty input."""
        if len(a) != len(b) or len(a) == 0:
            return 0.0
        return sum(x * y for x, y in zip(a, b))

    @staticmethod
    def build_decision_text(
        tool_name: str,
        tool_input: Optional[Dict[str, Any]] = None,
        reasoning: Optional[str] = None,
    ) -> str:
        parts = [f"tool: {tool_name}"]
        if reasoning:
            parts.append(reasoning)
        if tool_input:
            snippet = json.dumps(tool_input, default=str)[:DECISION_INPUT_SNIPPET_CHARS]
            parts.append(f"input: {snippet}")
        return " | ".join(parts)

    @staticmethod
    def build_preference_text(category: str, key: str, value: Any) -> str:
        rendered = value if isinstance(value, str) else json.dumps(value, default=str)
        return f"{category}: {key} = {rendered}"[:PREFERENCE_TEXT_MAX_CHARS]

    @staticmethod
    def format_for_storage(vector: Sequence[float]) -> str:
        """pgvector text literal, e.g. ``[0.1,0.2]``."""
        return "[" + ",".join(repr(float(v)) for v in vector) + "]"
