"""
Embedder Interface for codebase-vectorizer
"""

from abc import ABC, abstractmethod
from typing import List

from .errors import BackendUnavailableError


class Embedder(ABC):
    """Abstract interface for embedding generation"""

    @property
    def is_available(self) -> bool:
        """Whether this embedder can actually produce vectors"""
        return True

    @abstractmethod
    def generate(self, text: str) -> List[float]:
        """Generate a single embedding for the given text"""
        pass

    @abstractmethod
    def generate_batch(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for a batch of texts"""
        pass

    def unload(self) -> None:
        """Release the underlying model; the next call reloads it"""
        pass


class UnavailableEmbedder(Embedder):
    """Stands in when the embedding runtime is not installed; every call fails"""

    def __init__(self, reason: str = "sentence-transformers"):
        self.reason = reason

    @property
    def is_available(self) -> bool:
        return False

    def generate(self, text: str) -> List[float]:
        raise BackendUnavailableError("Embedding", f"pip install {self.reason}")

    def generate_batch(self, texts: List[str]) -> List[List[float]]:
        raise BackendUnavailableError("Embedding", f"pip install {self.reason}")
