"""
Shared fixtures for codebase-vectorizer tests

FakeEmbedder gives deterministic bag-of-words vectors so similarity tests do
not need a model download; InMemoryVectorStore stands in for Chroma where the
storage engine itself is not under test.
"""

import hashlib
import math
import re
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from codebase_vectorizer.core.embedder import Embedder
from codebase_vectorizer.core.models import ChunkRecord, SearchResult
from codebase_vectorizer.core.vector_store import VectorStore
from codebase_vectorizer.index.presets import DEFAULT_PRESETS
from codebase_vectorizer.index.store import IndexStore

DIMENSION = 32


class FakeEmbedder(Embedder):
    """Hashes words into a fixed number of buckets"""

    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.calls: List[str] = []
        self.unload_count = 0

    def generate(self, text: str) -> List[float]:
        if self.fail_on and self.fail_on in text:
            raise RuntimeError(f"embedding failed for text containing {self.fail_on!r}")
        self.calls.append(text)

        vector = [0.01] * DIMENSION
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            bucket = int(hashlib.md5(word.encode('utf-8')).hexdigest(), 16) % DIMENSION
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]

    def generate_batch(self, texts: List[str]) -> List[List[float]]:
        return [self.generate(t) for t in texts]

    def unload(self) -> None:
        self.unload_count += 1


class InMemoryVectorStore(VectorStore):
    """Dict-backed VectorStore using cosine distance"""

    def __init__(self):
        self.records: Dict[str, ChunkRecord] = {}
        self.search_calls: List[int] = []

    def add(self, records: List[ChunkRecord]) -> None:
        for record in records:
            if record.record_id in self.records:
                raise ValueError(f"duplicate id {record.record_id}")
            self.records[record.record_id] = record

    def delete_file(self, file: str) -> int:
        ids = [rid for rid, r in self.records.items() if r.file == file]
        for rid in ids:
            del self.records[rid]
        return len(ids)

    def search(self, query: List[float], top_k: int) -> List[SearchResult]:
        self.search_calls.append(top_k)
        hits = []
        for r in self.records.values():
            dot = sum(a * b for a, b in zip(query, r.vector))
            norm = math.sqrt(sum(a * a for a in query)) * math.sqrt(sum(b * b for b in r.vector))
            distance = 1.0 - (dot / norm if norm else 0.0)
            hits.append(SearchResult(r.file, r.chunk_index, r.content, distance, r.archived))
        hits.sort(key=lambda h: h.distance)
        return hits[:top_k]

    def count(self) -> int:
        return len(self.records)

    def files(self) -> Set[str]:
        return {r.file for r in self.records.values()}

    def clear(self) -> None:
        self.records = {}

    def rows_for(self, file: str) -> List[ChunkRecord]:
        return sorted(
            (r for r in self.records.values() if r.file == file),
            key=lambda r: r.chunk_index
        )


def write_file(root: Path, relative_path: str, content: str) -> Path:
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path


@pytest.fixture
def project(tmp_path):
    """Empty project root"""
    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def docs_store(project, embedder, vector_store):
    """IndexStore for the built-in docs preset backed by memory"""
    return IndexStore(project, DEFAULT_PRESETS['docs'], embedder, vector_store=vector_store)
