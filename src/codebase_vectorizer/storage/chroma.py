"""
Chroma Vector Store Implementation for codebase-vectorizer

Each index owns one persistent Chroma directory holding a single collection
of chunk records.
"""

import logging
import os
from typing import List, Optional, Set

import chromadb
from chromadb.config import Settings

from ..core.models import ChunkRecord, SearchResult
from ..core.vector_store import VectorStore

logger = logging.getLogger(__name__)

COLLECTION_NAME = "chunks"


class ChromaVectorStore(VectorStore):
    """
    Chroma-based implementation of VectorStore.

    Records are keyed by ``<file>::<chunk_index>`` and carry ``file``,
    ``chunk_index`` and ``archived`` metadata so a file's rows can be deleted
    with a metadata filter.
    """

    def __init__(self,
                 persist_directory: str,
                 collection_name: str = COLLECTION_NAME,
                 client: Optional["chromadb.ClientAPI"] = None):
        """
        Args:
            persist_directory: Directory for this index's vector table
            collection_name: Name of the Chroma collection
            client: Existing client to reuse (mainly for tests)
        """
        self.persist_directory = persist_directory
        self.collection_name = collection_name

        if client is None:
            os.makedirs(persist_directory, exist_ok=True)
            client = chromadb.PersistentClient(
                path=persist_directory,
                settings=Settings(anonymized_telemetry=False)
            )
        self.client = client
        self.collection = self._open_collection()

    def _open_collection(self):
        collection = self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None
        )
        logger.debug(f"Opened Chroma collection '{self.collection_name}' at {self.persist_directory}")
        return collection

    def add(self, records: List[ChunkRecord]) -> None:
        """Append chunk records with their precomputed vectors"""
        if not records:
            return
        self.collection.add(
            ids=[r.record_id for r in records],
            embeddings=[r.vector for r in records],
            metadatas=[
                {"file": r.file, "chunk_index": r.chunk_index, "archived": r.archived}
                for r in records
            ],
            documents=[r.content for r in records]
        )
        logger.debug(f"Added {len(records)} chunks for {records[0].file}")

    def delete_file(self, file: str) -> int:
        """Delete every record whose ``file`` metadata equals the given path"""
        existing = self.collection.get(where={"file": file}, include=["metadatas"])
        ids = existing["ids"]
        if ids:
            self.collection.delete(ids=ids)
            logger.debug(f"Removed {len(ids)} chunks for file: {file}")
        return len(ids)

    def search(self, query: List[float], top_k: int) -> List[SearchResult]:
        """
        Nearest-neighbour query.

        Chroma returns cosine distance (0 = identical), already sorted
        ascending. The request is clamped to the table size so an empty or
        small table never errors.
        """
        total = self.collection.count()
        if total == 0 or top_k <= 0:
            return []

        results = self.collection.query(
            query_embeddings=[query],
            n_results=min(top_k, total),
            include=["metadatas", "documents", "distances"]
        )

        hits = []
        if results["ids"] and results["ids"][0]:
            for i in range(len(results["ids"][0])):
                metadata = results["metadatas"][0][i] or {}
                hits.append(SearchResult(
                    file=metadata.get("file", ""),
                    chunk_index=int(metadata.get("chunk_index", 0)),
                    content=results["documents"][0][i] or "",
                    distance=float(results["distances"][0][i]),
                    archived=bool(metadata.get("archived", False))
                ))

        logger.debug(f"Vector search returned {len(hits)} results")
        return hits

    def count(self) -> int:
        return self.collection.count()

    def files(self) -> Set[str]:
        result = self.collection.get(include=["metadatas"])
        return {m.get("file") for m in (result["metadatas"] or []) if m and m.get("file")}

    def clear(self) -> None:
        """Drop the collection and recreate it empty"""
        try:
            self.client.delete_collection(name=self.collection_name)
        except Exception as e:
            logger.warning(f"Error deleting collection '{self.collection_name}': {e}")
        self.collection = self._open_collection()
        logger.info(f"Cleared vector table at {self.persist_directory}")
