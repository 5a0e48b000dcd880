"""
IndexStore - lifecycle of one named index.

Owns the index's hash cache and vector table and keeps them in step with the
files on disk: single-file and bulk indexing, freshening, health checks,
clearing and statistics.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from ..core.embedder import Embedder
from ..core.errors import BackendUnavailableError
from ..core.models import (
    ChunkRecord, FreshenResult, HealthReport, IndexAllResult, IndexOutcome, IndexStats,
)
from ..core.vector_store import VectorStore
from ..search.chunking import ChunkingManager, DEFAULT_MAX_CHARS, is_archived
from ..storage.hash_cache import HashCache, HASHES_FILENAME
from .health import classify_health
from .presets import IndexPreset, walk_matching_files

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".vectorizer/vectors"
VECTOR_TABLE_DIRNAME = "chroma"

ProgressCallback = Callable[[int, int, str], None]


class IndexStore:
    """
    One index's hash cache + vector table.

    All work is sequential: chunks of a file are embedded one after another
    and a file's records are written before the next file starts. Callers
    must not run two operations on the same index concurrently.
    """

    def __init__(self,
                 project_root: Union[str, Path],
                 preset: IndexPreset,
                 embedder: Embedder,
                 state_dir: str = DEFAULT_STATE_DIR,
                 vector_store: Optional[VectorStore] = None,
                 max_chars: int = DEFAULT_MAX_CHARS):
        """
        Args:
            project_root: Root directory the index covers
            preset: File-matching rules for this index
            embedder: Shared embedding provider
            state_dir: Project-relative directory holding all index state
            vector_store: Vector table for this index (built from the
                installed backend when omitted)
            max_chars: Maximum chunk size
        """
        self.root = Path(project_root).resolve()
        self.preset = preset
        self.name = preset.name
        self.base_dir = self.root / state_dir
        self.index_dir = self.base_dir / self.name
        self.embedder = embedder
        self.chunker = ChunkingManager(max_chars)

        self.index_dir.mkdir(parents=True, exist_ok=True)
        self.hash_cache = HashCache(self.index_dir / HASHES_FILENAME).load()

        if vector_store is None:
            from ..core.backend import create_vector_store
            vector_store = create_vector_store(self.index_dir / VECTOR_TABLE_DIRNAME)
        self.vector_store = vector_store

    # ─────────────────────────────────────────────────────────────────────────
    # Paths
    # ─────────────────────────────────────────────────────────────────────────

    def _absolute(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def _relative(self, path: Path) -> Optional[str]:
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    @staticmethod
    def _read_text(path: Path) -> str:
        with open(path, 'r', encoding='utf-8', errors='ignore') as f:
            return f.read()

    def list_files(self, ignore: Optional[Iterable[str]] = None) -> List[Path]:
        """Files this index should contain, in stable enumeration order"""
        return walk_matching_files(self.root, self.preset, ignore=ignore, skip_dirs=[self.base_dir])

    # ─────────────────────────────────────────────────────────────────────────
    # Indexing
    # ─────────────────────────────────────────────────────────────────────────

    async def index_file(self, path: Union[str, Path]) -> IndexOutcome:
        """
        Index one file if its content changed since it was last indexed.

        Returns NOT_INDEXED (with a warning) when the file cannot be read,
        UNCHANGED when the cached hash matches, INDEXED otherwise.
        """
        abs_path = self._absolute(path)
        relative_path = self._relative(abs_path)
        if relative_path is None:
            logger.warning(f"[{self.name}] Not under project root, skipping: {abs_path}")
            return IndexOutcome.NOT_INDEXED

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, self._read_text, abs_path)
        except OSError as e:
            logger.warning(f"[{self.name}] Cannot read {relative_path}: {e}")
            return IndexOutcome.NOT_INDEXED

        content_hash = HashCache.compute_hash(content)
        if self.hash_cache.get(relative_path) == content_hash:
            return IndexOutcome.UNCHANGED

        await self._store_content(relative_path, content, content_hash)
        return IndexOutcome.INDEXED

    async def _store_content(self, relative_path: str, content: str, content_hash: str) -> None:
        """Embed every chunk, replace the file's rows, then record the hash"""
        loop = asyncio.get_running_loop()
        archived = is_archived(relative_path, content)

        records = []
        # whitespace-only chunks carry nothing to search; indexes stay contiguous
        chunks = [chunk for chunk in self.chunker.chunk(content) if chunk.strip()]
        for chunk_index, chunk_text in enumerate(chunks):
            vector = await loop.run_in_executor(None, self.embedder.generate, chunk_text)
            records.append(ChunkRecord(
                file=relative_path,
                chunk_index=chunk_index,
                content=chunk_text,
                vector=vector,
                archived=archived
            ))

        await loop.run_in_executor(None, self.vector_store.replace_file, relative_path, records)

        self.hash_cache.set(relative_path, content_hash)
        await loop.run_in_executor(None, self.hash_cache.save)
        logger.debug(f"[{self.name}] Indexed {len(records)} chunks for: {relative_path}")

    async def index_all(self,
                        ignore: Optional[Iterable[str]] = None,
                        on_progress: Optional[ProgressCallback] = None) -> IndexAllResult:
        """
        Index every matching file.

        A failure on one file is logged and counted; it never aborts the
        pass. ``on_progress(position, total, relative_path)`` is called for
        each file that was actually (re)indexed.
        """
        loop = asyncio.get_running_loop()
        pruned = await loop.run_in_executor(None, self.prune_orphans)
        if pruned:
            logger.info(f"[{self.name}] Removed {pruned} orphaned chunks")

        files = await loop.run_in_executor(None, self.list_files, ignore)
        result = IndexAllResult(total=len(files))
        logger.info(f"[{self.name}] Indexing {len(files)} files under {self.root}")

        for position, file_path in enumerate(files, 1):
            try:
                outcome = await self.index_file(file_path)
            except BackendUnavailableError:
                raise
            except Exception as e:
                result.failed += 1
                logger.error(f"[{self.name}] Error indexing {file_path}: {e}")
                continue

            if outcome is IndexOutcome.INDEXED:
                result.indexed += 1
                if on_progress is not None:
                    on_progress(position, result.total, self._relative(file_path) or str(file_path))

        result.skipped = result.total - result.indexed
        logger.info(
            f"[{self.name}] Indexing complete: {result.indexed} indexed, "
            f"{result.skipped} skipped ({result.failed} failed), {result.total} total"
        )
        return result

    def prune_orphans(self) -> int:
        """Delete vector rows of files that have no hash-cache entry"""
        removed = 0
        for file in sorted(self.vector_store.files()):
            if file not in self.hash_cache:
                removed += self.vector_store.delete_file(file)
        return removed

    # ─────────────────────────────────────────────────────────────────────────
    # Health & freshen
    # ─────────────────────────────────────────────────────────────────────────

    async def check_health(self, ignore: Optional[Iterable[str]] = None) -> HealthReport:
        """Compare the expected file count with the hash cache size"""
        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, self.list_files, ignore)
        report = classify_health(expected=len(files), cached=len(self.hash_cache))
        logger.info(
            f"[{self.name}] Health: {report.reason.value} "
            f"(expected {report.expected}, cached {report.cached})"
        )
        return report

    async def freshen(self) -> FreshenResult:
        """
        Re-check every cached file.

        Changed files are re-indexed; files that can no longer be read lose
        their cache entry and their vector rows. New files are not picked up
        here, that is what index_all is for.
        """
        loop = asyncio.get_running_loop()
        cached_paths = self.hash_cache.paths()
        result = FreshenResult(checked=len(cached_paths))

        for relative_path in cached_paths:
            try:
                content = await loop.run_in_executor(None, self._read_text, self.root / relative_path)
            except OSError:
                self.hash_cache.remove(relative_path)
                await loop.run_in_executor(None, self.vector_store.delete_file, relative_path)
                result.deleted += 1
                logger.info(f"[{self.name}] Removed deleted file: {relative_path}")
                continue

            content_hash = HashCache.compute_hash(content)
            if self.hash_cache.get(relative_path) == content_hash:
                continue

            try:
                await self._store_content(relative_path, content, content_hash)
            except BackendUnavailableError:
                raise
            except Exception as e:
                logger.error(f"[{self.name}] Error re-indexing {relative_path}: {e}")
                continue
            result.updated += 1

        if result.deleted:
            await loop.run_in_executor(None, self.hash_cache.save)

        logger.info(
            f"[{self.name}] Freshen: {result.checked} checked, "
            f"{result.updated} updated, {result.deleted} deleted"
        )
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Delete this index's vectors and hashes and start empty"""
        self.vector_store.clear()
        self.hash_cache.clear()
        self.index_dir.mkdir(parents=True, exist_ok=True)
        # an empty hashes.json keeps the index discoverable
        self.hash_cache.save()
        logger.info(f"[{self.name}] Cleared index")

    def get_stats(self) -> IndexStats:
        try:
            chunk_count = self.vector_store.count()
        except Exception as e:
            logger.debug(f"[{self.name}] Could not count chunks: {e}")
            chunk_count = 0

        return IndexStats(
            index_name=self.name,
            description=self.preset.description,
            file_count=len(self.hash_cache),
            chunk_count=chunk_count
        )

    def unload_model(self) -> None:
        """Release the embedding model once a bulk operation is done"""
        self.embedder.unload()
