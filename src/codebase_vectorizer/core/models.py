"""
Data models for codebase-vectorizer
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class IndexOutcome(str, Enum):
    """Result of indexing a single file"""
    INDEXED = "indexed"
    UNCHANGED = "unchanged"
    NOT_INDEXED = "not_indexed"


class HealthReason(str, Enum):
    """
    Classification produced by a health check.

    - EMPTY: hash cache has no entries while matching files exist
    - MISMATCH: cached and expected file counts drifted too far apart
    - OK: counts are close enough for an incremental freshen
    """
    EMPTY = "empty"
    MISMATCH = "mismatch"
    OK = "ok"


@dataclass
class ChunkRecord:
    """One embedded slice of a file as stored in the vector table"""
    file: str
    chunk_index: int
    content: str
    vector: List[float]
    archived: bool = False

    @property
    def record_id(self) -> str:
        return f"{self.file}::{self.chunk_index}"


@dataclass
class SearchResult:
    """A chunk returned by a similarity query"""
    file: str
    chunk_index: int
    content: str
    distance: float
    archived: bool = False
    index: Optional[str] = None

    @property
    def score(self) -> float:
        return 1.0 - self.distance

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["score"] = self.score
        return data


@dataclass
class IndexAllResult:
    """Aggregate counts for a bulk indexing pass"""
    indexed: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class FreshenResult:
    """Aggregate counts for a freshen pass"""
    checked: int = 0
    updated: int = 0
    deleted: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class HealthReport:
    """Outcome of comparing expected and cached file counts"""
    needs_reindex: bool
    reason: HealthReason
    expected: int
    cached: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "needs_reindex": self.needs_reindex,
            "reason": self.reason.value,
            "expected": self.expected,
            "cached": self.cached,
        }


@dataclass
class IndexStats:
    """File and chunk counts for one index"""
    index_name: str
    description: str
    file_count: int
    chunk_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
