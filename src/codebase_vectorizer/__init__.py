"""
Codebase Vectorizer - local semantic search over a project's files

This package provides:
- Named indexes (code, docs, config, custom) built from glob presets
- Incremental indexing gated by per-file content hashes
- Startup health checks and freshening of stale indexes
- A debounced change queue for re-indexing edited files
- Similarity search over one index or all of them

Quick Start:
    from codebase_vectorizer import VectorizerService

    service = VectorizerService("/path/to/project")
    service.reindex("all")

    results = service.search("how are config files loaded", index="all")
"""

from typing import TYPE_CHECKING

# Core types - lightweight, always available
from .core.models import (
    ChunkRecord, SearchResult, IndexOutcome, HealthReason,
    IndexAllResult, FreshenResult, HealthReport, IndexStats,
)
from .core.vector_store import VectorStore
from .core.embedder import Embedder
from .core.errors import VectorizerError, BackendUnavailableError, UnknownIndexError

# Configuration
from .config.settings import VectorizerConfig, IndexConfig, load_config

# Type hints only - not imported at runtime for faster startup
if TYPE_CHECKING:
    from .service.vectorizer_service import VectorizerService
    from .storage.chroma import ChromaVectorStore
    from .embedding.sentence_transformer import SentenceTransformerEmbedder


# Lazy loaders for heavy modules
def get_vectorizer_service():
    """Lazy import of VectorizerService"""
    from .service.vectorizer_service import VectorizerService
    return VectorizerService


def get_chroma_vector_store():
    """Lazy import of ChromaVectorStore (loads ChromaDB)"""
    from .storage.chroma import ChromaVectorStore
    return ChromaVectorStore


def get_sentence_transformer_embedder():
    """Lazy import of SentenceTransformerEmbedder"""
    from .embedding.sentence_transformer import SentenceTransformerEmbedder
    return SentenceTransformerEmbedder


# Lazy module for attribute access
class _LazyModule:
    """Wrapper to provide lazy-loaded module attributes"""

    @property
    def VectorizerService(self):
        return get_vectorizer_service()

    @property
    def ChromaVectorStore(self):
        return get_chroma_vector_store()

    @property
    def SentenceTransformerEmbedder(self):
        return get_sentence_transformer_embedder()


_lazy = _LazyModule()


def __getattr__(name):
    """Module-level __getattr__ for lazy loading"""
    if hasattr(_lazy, name):
        return getattr(_lazy, name)
    raise AttributeError(f"module 'codebase_vectorizer' has no attribute '{name}'")


__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",

    # Core types
    "ChunkRecord", "SearchResult", "IndexOutcome", "HealthReason",
    "IndexAllResult", "FreshenResult", "HealthReport", "IndexStats",
    "VectorStore", "Embedder",
    "VectorizerError", "BackendUnavailableError", "UnknownIndexError",

    # Configuration
    "VectorizerConfig", "IndexConfig", "load_config",

    # Lazy-loaded (use get_* functions for explicit loading)
    "get_vectorizer_service",
    "get_chroma_vector_store",
    "get_sentence_transformer_embedder",
    "VectorizerService",
    "ChromaVectorStore", "SentenceTransformerEmbedder",
]
