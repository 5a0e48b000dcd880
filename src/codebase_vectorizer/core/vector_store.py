"""
Vector Store Interface for codebase-vectorizer
"""

from abc import ABC, abstractmethod
from typing import List, Set

from .errors import BackendUnavailableError
from .models import ChunkRecord, SearchResult


class VectorStore(ABC):
    """Abstract interface for one index's table of chunk records"""

    @property
    def is_available(self) -> bool:
        return True

    @abstractmethod
    def add(self, records: List[ChunkRecord]) -> None:
        """Append chunk records to the table"""
        pass

    @abstractmethod
    def delete_file(self, file: str) -> int:
        """Delete every record of a file, returning how many were removed"""
        pass

    @abstractmethod
    def search(self, query: List[float], top_k: int) -> List[SearchResult]:
        """Return up to top_k nearest records, ascending by distance"""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of records in the table"""
        pass

    @abstractmethod
    def files(self) -> Set[str]:
        """Distinct file paths that have at least one record"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop all records"""
        pass

    def replace_file(self, file: str, records: List[ChunkRecord]) -> None:
        """Delete a file's existing records, then append the new ones"""
        self.delete_file(file)
        if records:
            self.add(records)


class UnavailableVectorStore(VectorStore):
    """Stands in when the vector store engine is not installed"""

    @property
    def is_available(self) -> bool:
        return False

    def _fail(self):
        raise BackendUnavailableError("Vector store", "pip install chromadb")

    def add(self, records: List[ChunkRecord]) -> None:
        self._fail()

    def delete_file(self, file: str) -> int:
        self._fail()

    def search(self, query: List[float], top_k: int) -> List[SearchResult]:
        self._fail()

    def count(self) -> int:
        return 0

    def files(self) -> Set[str]:
        return set()

    def clear(self) -> None:
        pass
