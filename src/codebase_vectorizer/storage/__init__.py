"""Storage implementations for codebase-vectorizer"""

from .hash_cache import HashCache, HASHES_FILENAME

__all__ = ["HashCache", "HASHES_FILENAME"]
