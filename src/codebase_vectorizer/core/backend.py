"""
Backend capability checks

Decides once, at construction time, whether the real embedding model and
vector store can be used or whether their "not available" variants stand in.
"""

import importlib.util
import logging
from pathlib import Path
from typing import Optional

from .embedder import Embedder, UnavailableEmbedder
from .vector_store import VectorStore, UnavailableVectorStore

logger = logging.getLogger(__name__)


def _installed(module_name: str) -> bool:
    return importlib.util.find_spec(module_name) is not None


def embedding_backend_installed() -> bool:
    return _installed("sentence_transformers")


def vector_backend_installed() -> bool:
    return _installed("chromadb")


def create_embedder(model_name: Optional[str] = None, device: Optional[str] = None) -> Embedder:
    """Build the sentence-transformers embedder, or the unavailable variant"""
    if not embedding_backend_installed():
        logger.warning("sentence-transformers is not installed; semantic indexing is disabled")
        return UnavailableEmbedder("sentence-transformers")

    from ..embedding.sentence_transformer import SentenceTransformerEmbedder, DEFAULT_MODEL
    return SentenceTransformerEmbedder(model_name=model_name or DEFAULT_MODEL, device=device)


def create_vector_store(persist_directory: Path) -> VectorStore:
    """Build a Chroma-backed store for one index, or the unavailable variant"""
    if not vector_backend_installed():
        logger.warning("chromadb is not installed; vector storage is disabled")
        return UnavailableVectorStore()

    from ..storage.chroma import ChromaVectorStore
    return ChromaVectorStore(persist_directory=str(persist_directory))
