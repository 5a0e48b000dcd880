"""Chunking and similarity search"""

from .chunking import ChunkingManager, chunk, is_archived, DEFAULT_MAX_CHARS
from .query import QueryService, ALL_INDEXES, OVERFETCH_FACTOR

__all__ = [
    "ChunkingManager",
    "chunk",
    "is_archived",
    "DEFAULT_MAX_CHARS",
    "QueryService",
    "ALL_INDEXES",
    "OVERFETCH_FACTOR",
]
