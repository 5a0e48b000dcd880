"""Index lifecycle: presets, per-index stores, health and discovery"""

from .presets import IndexPreset, DEFAULT_PRESETS, walk_matching_files
from .health import classify_health, drift_threshold
from .store import IndexStore, DEFAULT_STATE_DIR, VECTOR_TABLE_DIRNAME
from .registry import IndexRegistry

__all__ = [
    "IndexPreset",
    "DEFAULT_PRESETS",
    "walk_matching_files",
    "classify_health",
    "drift_threshold",
    "IndexStore",
    "IndexRegistry",
    "DEFAULT_STATE_DIR",
    "VECTOR_TABLE_DIRNAME",
]
