"""PropValet memory - embeddings, preference recall and decision precedent."""

from .embeddings import EmbeddingBackend, EmbeddingService, OpenAIEmbeddingBackend, l2_normalize
from .repository import DecisionRepository, PreferenceRepository
from .semantic import MemorySearchResult, SearchMode, SemanticMemory, split_preference_key

__all__ = [
    "EmbeddingBackend",
    "EmbeddingService",
    "OpenAIEmbeddingBackend",
    "l2_normalize",
    "DecisionRepository",
    "PreferenceRepository",
    "MemorySearchResult",
    "SearchMode",
    "SemanticMemory",
    "split_preference_key",
]
