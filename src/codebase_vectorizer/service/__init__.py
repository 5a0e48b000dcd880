"""Service facade for codebase-vectorizer"""

from .vectorizer_service import VectorizerService

__all__ = ["VectorizerService"]
