"""Core interfaces and data models for codebase-vectorizer"""

from .models import (
    ChunkRecord, SearchResult, IndexOutcome, HealthReason,
    IndexAllResult, FreshenResult, HealthReport, IndexStats,
)
from .embedder import Embedder, UnavailableEmbedder
from .vector_store import VectorStore, UnavailableVectorStore
from .errors import VectorizerError, BackendUnavailableError, UnknownIndexError

__all__ = [
    "ChunkRecord", "SearchResult", "IndexOutcome", "HealthReason",
    "IndexAllResult", "FreshenResult", "HealthReport", "IndexStats",
    "Embedder", "UnavailableEmbedder",
    "VectorStore", "UnavailableVectorStore",
    "VectorizerError", "BackendUnavailableError", "UnknownIndexError",
]
