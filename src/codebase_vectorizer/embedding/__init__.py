"""Embedding implementations for codebase-vectorizer"""

from .sentence_transformer import SentenceTransformerEmbedder, DEFAULT_MODEL

__all__ = ["SentenceTransformerEmbedder", "DEFAULT_MODEL"]
