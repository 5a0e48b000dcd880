"""
Query service

Embeds a query once and runs it against one index or all of them, hiding
archived chunks unless asked for.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..core.embedder import Embedder
from ..core.models import SearchResult
from ..core.vector_store import VectorStore

logger = logging.getLogger(__name__)

ALL_INDEXES = "all"

# archived rows are filtered after the vector search, so fetch extra
OVERFETCH_FACTOR = 3


class QueryService:
    """
    Similarity search over the project's indexes.

    ``open_store(name)`` returns the vector table of an index and
    ``list_indexes()`` the names of indexes that exist on disk.
    """

    def __init__(self,
                 embedder: Embedder,
                 open_store: Callable[[str], VectorStore],
                 list_indexes: Callable[[], List[str]]):
        self.embedder = embedder
        self._open_store = open_store
        self._list_indexes = list_indexes

    @staticmethod
    def is_all(index: Optional[str]) -> bool:
        return index is None or index == ALL_INDEXES

    async def search(self,
                     query: str,
                     limit: int = 5,
                     index: Optional[str] = "code",
                     include_archived: bool = False) -> List[SearchResult]:
        """
        Return up to ``limit`` chunks ordered by ascending distance.

        With ``index`` None or "all", every on-disk index is searched and the
        per-index results are merged. An index that does not exist yields no
        results.
        """
        if limit <= 0:
            return []

        available = self._list_indexes()
        names = available if self.is_all(index) else [n for n in available if n == index]
        if not names:
            logger.debug(f"No index to search for: {index}")
            return []

        loop = asyncio.get_running_loop()
        vector = await loop.run_in_executor(None, self.embedder.generate, query)

        results: List[SearchResult] = []
        for name in names:
            results.extend(await self._search_index(name, vector, limit, include_archived))

        results.sort(key=lambda r: r.distance)
        logger.debug(f"Search over {len(names)} index(es) returned {len(results[:limit])} results")
        return results[:limit]

    async def _search_index(self,
                            name: str,
                            vector: List[float],
                            limit: int,
                            include_archived: bool) -> List[SearchResult]:
        store = self._open_store(name)
        fetch = limit if include_archived else limit * OVERFETCH_FACTOR

        loop = asyncio.get_running_loop()
        hits = await loop.run_in_executor(None, store.search, vector, fetch)

        if not include_archived:
            hits = [hit for hit in hits if not hit.archived]
        for hit in hits:
            hit.index = name
        return hits[:limit]
