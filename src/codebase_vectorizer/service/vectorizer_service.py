"""
VectorizerService - single entry point for a project's semantic indexes.

Owns the shared embedder, one IndexStore per index, the query service and
the change queue. Editor integrations and front ends are thin wrappers
around this service.
"""

import asyncio
import concurrent.futures
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..config.settings import VectorizerConfig, load_config
from ..core.backend import create_embedder, create_vector_store, vector_backend_installed
from ..core.embedder import Embedder
from ..core.errors import BackendUnavailableError, UnknownIndexError, VectorizerError
from ..core.vector_store import VectorStore
from ..index.registry import IndexRegistry
from ..index.store import IndexStore, ProgressCallback, VECTOR_TABLE_DIRNAME
from ..search.query import QueryService
from ..watch.change_queue import ChangeQueue

logger = logging.getLogger(__name__)

VectorStoreFactory = Callable[[Path], VectorStore]


def _run_sync(coro):
    """
    Run an async coroutine synchronously, handling the case where
    an event loop may or may not already be running.
    """
    try:
        asyncio.get_running_loop()
        # We're in an async context - run in a thread pool
        with concurrent.futures.ThreadPoolExecutor() as executor:
            future = executor.submit(asyncio.run, coro)
            return future.result()
    except RuntimeError:
        # No running loop, safe to use asyncio.run directly
        return asyncio.run(coro)


class VectorizerService:
    """
    Semantic search service for one project.

    Provides both sync and async versions of the long-running operations:
    - reindex() / reindex_async()
    - search() / search_async()
    - clear() / clear_async()
    - ensure_fresh() / ensure_fresh_async()

    Manual operations report failures as ``{"success": False, "error": ...}``.
    """

    def __init__(self,
                 project_root: Union[str, Path],
                 config: Optional[VectorizerConfig] = None,
                 embedder: Optional[Embedder] = None,
                 vector_store_factory: Optional[VectorStoreFactory] = None):
        """
        Args:
            project_root: Directory whose files are indexed
            config: Settings; loaded from the project's config file when omitted
            embedder: Embedding provider shared by every index
            vector_store_factory: Builds an index's vector table from its
                directory (Chroma when omitted)
        """
        self.root = Path(project_root).resolve()
        self.config = config if config is not None else load_config(str(self.root))
        self.registry = IndexRegistry(self.root, self.config)

        self.embedder = embedder if embedder is not None else create_embedder(
            self.config.embedding_model, self.config.device
        )
        self._vector_store_factory = vector_store_factory or create_vector_store
        self._vector_available = vector_store_factory is not None or vector_backend_installed()

        self._stores: Dict[str, IndexStore] = {}

        self.query_service = QueryService(
            self.embedder,
            open_store=lambda name: self.get_store(name, strict=False).vector_store,
            list_indexes=self.registry.list_indexes
        )
        self.change_queue = ChangeQueue(
            self.root,
            self.config,
            self.registry,
            store_for=self.get_store,
            backend_available=self.is_backend_available
        )

        logger.info(f"Vectorizer service ready for: {self.root}")

    # ─────────────────────────────────────────────────────────────────────────
    # Stores
    # ─────────────────────────────────────────────────────────────────────────

    def is_backend_available(self) -> bool:
        return self.embedder.is_available and self._vector_available

    def _backend_error(self) -> Dict[str, Any]:
        if not self.embedder.is_available:
            error = BackendUnavailableError("Embedding", "pip install sentence-transformers")
        else:
            error = BackendUnavailableError("Vector store", "pip install chromadb")
        return {"success": False, "error": str(error)}

    def get_store(self, name: str, strict: bool = True) -> IndexStore:
        """Return the (cached) IndexStore for an index name"""
        preset = self.registry.get_preset(name, strict=strict)
        store = self._stores.get(name)
        if store is not None:
            return store

        store = IndexStore(
            self.root,
            preset,
            self.embedder,
            state_dir=self.config.state_dir,
            vector_store=self._vector_store_factory(self.registry.index_dir(name) / VECTOR_TABLE_DIRNAME),
            max_chars=self.config.chunk_max_chars
        )
        self._stores[name] = store
        return store

    def _resolve_names(self, index: Optional[str], existing_only: bool = False) -> List[str]:
        if QueryService.is_all(index):
            return self.registry.list_indexes() if existing_only else self.config.get_enabled_indexes()
        return [index]

    # ─────────────────────────────────────────────────────────────────────────
    # Public API - Async versions
    # ─────────────────────────────────────────────────────────────────────────

    async def reindex_async(self,
                            index: Optional[str] = "code",
                            force: bool = False,
                            on_progress: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """
        Index one index, or every enabled index for "all".

        With ``force`` the index is cleared first so every file is embedded
        again.
        """
        if not self.is_backend_available():
            return self._backend_error()

        results: Dict[str, Any] = {}
        try:
            for name in self._resolve_names(index):
                store = self.get_store(name)
                if force:
                    await asyncio.get_running_loop().run_in_executor(None, store.clear)
                try:
                    result = await store.index_all(ignore=self.config.exclude, on_progress=on_progress)
                finally:
                    store.unload_model()
                results[name] = result.to_dict()
        except VectorizerError as e:
            logger.error(f"Reindex failed: {e}")
            return {"success": False, "error": str(e)}

        return {"success": True, "indexes": results}

    async def search_async(self,
                           query: str,
                           index: Optional[str] = "code",
                           limit: int = 5,
                           include_archived: bool = False) -> Dict[str, Any]:
        """
        Search one index, or all on-disk indexes for "all" / None.

        Returns a dict with the ranked results, or an error dict when the
        backend is unavailable or the requested index has not been built.
        """
        if not self.is_backend_available():
            return self._backend_error()

        if QueryService.is_all(index):
            if not self.registry.list_indexes():
                return {"success": False, "error": "No indexes found. Run reindex first"}
        elif not self.registry.exists(index):
            return {"success": False, "error": f"Index '{index}' not found. Run reindex for it first"}

        try:
            results = await self.query_service.search(
                query, limit=limit, index=index, include_archived=include_archived
            )
        except VectorizerError as e:
            logger.error(f"Search failed: {e}")
            return {"success": False, "error": str(e)}

        return {
            "success": True,
            "query": query,
            "index": index or "all",
            "count": len(results),
            "results": [r.to_dict() for r in results]
        }

    async def clear_async(self, index: Optional[str] = "all") -> Dict[str, Any]:
        """Delete index state; "all" clears every index on disk"""
        cleared = []
        try:
            for name in self._resolve_names(index, existing_only=True):
                if not self.registry.exists(name):
                    continue
                store = self.get_store(name, strict=False)
                await asyncio.get_running_loop().run_in_executor(None, store.clear)
                cleared.append(name)
        except VectorizerError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "cleared": cleared}

    async def ensure_fresh_async(self, ignore: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """
        Startup check for every enabled index.

        Unhealthy indexes are fully indexed, healthy ones freshened. Skipped
        quietly when the backend is unavailable.
        """
        if not (self.config.enabled and self.is_backend_available()):
            logger.info("Vectorizer disabled or backend unavailable, skipping startup freshen")
            return {}

        ignore = list(self.config.exclude) + list(ignore or [])
        report: Dict[str, Any] = {}
        for name in self.config.get_enabled_indexes():
            try:
                store = self.get_store(name)
            except UnknownIndexError as e:
                logger.warning(str(e))
                continue

            try:
                health = await store.check_health(ignore)
                if health.needs_reindex:
                    logger.info(f"[{name}] Rebuilding index ({health.reason.value})")
                    result = await store.index_all(ignore=ignore)
                    action = "reindex"
                else:
                    result = await store.freshen()
                    action = "freshen"
            except BackendUnavailableError as e:
                logger.info(f"[{name}] Skipping startup freshen: {e}")
                continue
            finally:
                store.unload_model()

            report[name] = {"action": action, "health": health.to_dict(), "result": result.to_dict()}

        return report

    async def start_async(self) -> None:
        """
        Bind the change queue to the running event loop.

        After this, notify_file_event may be called from any thread, including
        sync callers with no loop of their own.
        """
        self.change_queue.bind_loop()
        logger.info(f"Change queue bound to event loop for: {self.root}")

    async def close_async(self) -> None:
        """Stop the change queue and release the embedding model"""
        await self.change_queue.close()
        self.embedder.unload()

    # ─────────────────────────────────────────────────────────────────────────
    # Public API - Sync versions (wrap async)
    # ─────────────────────────────────────────────────────────────────────────

    def reindex(self, index: Optional[str] = "code", force: bool = False,
                on_progress: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """Sync wrapper for reindex_async"""
        return _run_sync(self.reindex_async(index, force, on_progress))

    def search(self, query: str, index: Optional[str] = "code", limit: int = 5,
               include_archived: bool = False) -> Dict[str, Any]:
        """Sync wrapper for search_async"""
        return _run_sync(self.search_async(query, index, limit, include_archived))

    def clear(self, index: Optional[str] = "all") -> Dict[str, Any]:
        """Sync wrapper for clear_async"""
        return _run_sync(self.clear_async(index))

    def ensure_fresh(self, ignore: Optional[Iterable[str]] = None) -> Dict[str, Any]:
        """Sync wrapper for ensure_fresh_async"""
        return _run_sync(self.ensure_fresh_async(ignore))

    # ─────────────────────────────────────────────────────────────────────────
    # Notifier
    # ─────────────────────────────────────────────────────────────────────────

    def notify_file_event(self, path: Union[str, Path], event_kind: str) -> bool:
        """
        Forward an editor/watcher event to the change queue.

        Returns False without queueing when no event loop is available (call
        start_async() from the serving loop first when notifying from other
        threads).
        """
        return self.change_queue.notify(path, event_kind)

    # ─────────────────────────────────────────────────────────────────────────
    # Status methods (sync - no async I/O needed)
    # ─────────────────────────────────────────────────────────────────────────

    def get_status(self, index: Optional[str] = "all") -> Dict[str, Any]:
        """File and chunk counts for one index or every index on disk"""
        indexes: Dict[str, Any] = {}
        for name in self._resolve_names(index, existing_only=True):
            if not self.registry.exists(name):
                indexes[name] = {"index_name": name, "exists": False}
                continue
            stats = self.get_store(name, strict=False).get_stats().to_dict()
            stats["exists"] = True
            indexes[name] = stats

        return {
            "project_root": str(self.root),
            "backend_available": self.is_backend_available(),
            "auto_index": self.config.enabled and self.config.auto_index,
            "pending_changes": len(self.change_queue),
            "indexes": indexes
        }

    def list_indexes(self) -> List[Dict[str, Any]]:
        """Stats of every on-disk index that holds at least one chunk"""
        listed = []
        for name in self.registry.list_indexes():
            stats = self.get_store(name, strict=False).get_stats()
            if stats.chunk_count > 0:
                listed.append(stats.to_dict())
        return listed
