"""
Debounced change queue

Collects file-edit notifications, coalesces repeated edits of the same path
and, once a path has been quiet for the debounce window, hands it to the
index that claims it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Set, Tuple, Union

from ..core.errors import BackendUnavailableError, UnknownIndexError
from ..core.models import IndexOutcome

if TYPE_CHECKING:
    from ..config.settings import VectorizerConfig
    from ..index.registry import IndexRegistry
    from ..index.store import IndexStore

logger = logging.getLogger(__name__)

CONTENT_EDIT_EVENTS = frozenset({"file.edited", "file.watcher.updated"})

# added to the debounce window so the timer fires after entries are ripe
TIMER_MARGIN_MS = 100


@dataclass
class PendingEntry:
    index_name: str
    enqueued_at: float


class ChangeQueue:
    """
    Pending edits keyed by absolute path.

    One entry per path; a repeat notification replaces the entry and resets
    its timestamp. A single timer is re-armed on every enqueue. When it fires,
    entries older than the debounce window are flushed, grouped by index.
    Notifications may arrive from any thread; queue state is only touched
    on the thread running the bound event loop.
    """

    def __init__(self,
                 project_root: Union[str, Path],
                 config: "VectorizerConfig",
                 registry: "IndexRegistry",
                 store_for: Callable[[str], "IndexStore"],
                 backend_available: Callable[[], bool],
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            project_root: Only paths under this root are accepted
            config: Supplies auto_index, debounce_ms and exclude rules
            registry: Decides which index claims a path
            store_for: Returns the IndexStore for an index name
            backend_available: Checked at flush time; when False the ripe
                entries are dropped
            clock: Monotonic time source in seconds
        """
        self.root = Path(project_root).resolve()
        self.config = config
        self.registry = registry
        self._store_for = store_for
        self._backend_available = backend_available
        self._clock = clock

        self._pending: Dict[Path, PendingEntry] = {}
        self._disabled: Set[str] = set()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._flush_task: Optional[asyncio.Task] = None
        self._flush_lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def debounce_seconds(self) -> float:
        return self.config.debounce_ms / 1000.0

    @property
    def pending(self) -> Dict[str, PendingEntry]:
        """Snapshot of pending entries keyed by absolute path string"""
        return {str(path): entry for path, entry in self._pending.items()}

    def __len__(self) -> int:
        return len(self._pending)

    # ─────────────────────────────────────────────────────────────────────────
    # Intake
    # ─────────────────────────────────────────────────────────────────────────

    def notify(self, path: Union[str, Path], event_kind: str) -> bool:
        """Accept an editor/watcher event; returns True if the path was queued"""
        if event_kind not in CONTENT_EDIT_EVENTS:
            return False
        if not (self.config.enabled and self.config.auto_index):
            return False
        return self.enqueue(path) is not None

    def enqueue(self, path: Union[str, Path]) -> Optional[str]:
        """
        Queue a path for its claiming index.

        Returns the index name, or None when the path is outside the
        project, excluded, claimed by no enabled index, or when no event
        loop is available to run the debounce timer. May be called from
        any thread once the queue is bound to a loop.
        """
        path = Path(path)
        abs_path = (path if path.is_absolute() else self.root / path).resolve()

        try:
            relative_path = abs_path.relative_to(self.root).as_posix()
        except ValueError:
            logger.debug(f"Ignoring change outside project: {abs_path}")
            return None

        if self.config.is_excluded(relative_path):
            logger.debug(f"Ignoring excluded path: {relative_path}")
            return None

        index_name = self.registry.claim(relative_path, skip=list(self._disabled))
        if index_name is None:
            logger.debug(f"No index claims: {relative_path}")
            return None

        loop, on_loop_thread = self._event_loop()
        if loop is None:
            logger.warning(f"[{index_name}] No running event loop, change not queued: {relative_path}")
            return None

        if on_loop_thread:
            self._upsert(abs_path, index_name)
        else:
            loop.call_soon_threadsafe(self._upsert, abs_path, index_name)
        logger.debug(f"[{index_name}] Queued: {relative_path}")
        return index_name

    def _upsert(self, abs_path: Path, index_name: str) -> None:
        self._pending.pop(abs_path, None)
        self._pending[abs_path] = PendingEntry(index_name=index_name, enqueued_at=self._clock())
        self._arm_timer(self.debounce_seconds + TIMER_MARGIN_MS / 1000.0)

    def disable_index(self, name: str) -> int:
        """Drop the index's pending entries and stop queueing for it"""
        self._disabled.add(name)
        dropped = [path for path, entry in self._pending.items() if entry.index_name == name]
        for path in dropped:
            del self._pending[path]
        if dropped:
            logger.debug(f"[{name}] Dropped {len(dropped)} pending changes")
        return len(dropped)

    def enable_index(self, name: str) -> None:
        self._disabled.discard(name)

    # ─────────────────────────────────────────────────────────────────────────
    # Timer
    # ─────────────────────────────────────────────────────────────────────────

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Attach the loop that runs the timer and flushes (the running one by default)"""
        self._loop = loop or asyncio.get_running_loop()

    def _event_loop(self) -> Tuple[Optional[asyncio.AbstractEventLoop], bool]:
        """The loop to schedule on, and whether we are already on its thread"""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            if self._loop is None or self._loop is running or not self._loop.is_running():
                self._loop = running
                return running, True

        if self._loop is not None and self._loop.is_running():
            return self._loop, False
        return None, False

    def _arm_timer(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._run_flush())

    async def _run_flush(self) -> None:
        try:
            await self.flush()
        except Exception as e:
            logger.error(f"Change queue flush failed: {e}")

        # leftovers were not ripe yet; wait out the youngest of them
        if self._pending and self._timer is None:
            newest = max(entry.enqueued_at for entry in self._pending.values())
            remaining = max(0.0, self.debounce_seconds - (self._clock() - newest))
            self._arm_timer(remaining + TIMER_MARGIN_MS / 1000.0)

    # ─────────────────────────────────────────────────────────────────────────
    # Flush
    # ─────────────────────────────────────────────────────────────────────────

    def _drain_ripe(self, now: float) -> Dict[str, List[Path]]:
        ripe: Dict[str, List[Path]] = {}
        for path, entry in list(self._pending.items()):
            if now - entry.enqueued_at >= self.debounce_seconds:
                ripe.setdefault(entry.index_name, []).append(path)
                del self._pending[path]
        return ripe

    async def flush(self, now: Optional[float] = None) -> Dict[str, Dict[str, IndexOutcome]]:
        """
        Index every ripe entry.

        Returns ``{index_name: {absolute_path: outcome}}`` for the files that
        were processed. Ripe entries are dropped without indexing when the
        backend is unavailable.
        """
        async with self._flush_lock:
            ripe = self._drain_ripe(self._clock() if now is None else now)
            if not ripe:
                return {}

            if not self._backend_available():
                dropped = sum(len(paths) for paths in ripe.values())
                logger.debug(f"Embedding backend unavailable, dropped {dropped} queued changes")
                return {}

            processed: Dict[str, Dict[str, IndexOutcome]] = {}
            for index_name, paths in ripe.items():
                try:
                    store = self._store_for(index_name)
                except UnknownIndexError as e:
                    logger.warning(f"[{index_name}] Skipping queued changes: {e}")
                    continue

                outcomes = processed.setdefault(index_name, {})
                for path in paths:
                    try:
                        outcomes[str(path)] = await store.index_file(path)
                    except BackendUnavailableError as e:
                        logger.debug(f"[{index_name}] {e}")
                        break
                    except Exception as e:
                        logger.error(f"[{index_name}] Error indexing {path}: {e}")
                        continue
                    logger.debug(f"[{index_name}] {outcomes[str(path)].value}: {path}")

                store.unload_model()

            return processed

    async def close(self) -> None:
        """Cancel the timer, let an in-flight flush finish, drop what is left"""
        self._cancel_timer()
        if self._flush_task is not None and not self._flush_task.done():
            await self._flush_task
        self._flush_task = None
        # the finished flush may have re-armed for leftovers
        self._cancel_timer()
        self._pending.clear()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
