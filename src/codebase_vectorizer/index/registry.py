"""
Index registry

Resolves index names to presets (built-in presets merged with per-index
config overrides) and discovers which indexes exist on disk.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from ..core.errors import UnknownIndexError
from ..storage.hash_cache import HASHES_FILENAME
from .presets import DEFAULT_PRESETS, IndexPreset
from .store import VECTOR_TABLE_DIRNAME

if TYPE_CHECKING:
    from ..config.settings import VectorizerConfig

logger = logging.getLogger(__name__)


class IndexRegistry:
    """Name -> preset resolution and on-disk index discovery for a project"""

    def __init__(self, project_root: Union[str, Path], config: "VectorizerConfig"):
        self.root = Path(project_root).resolve()
        self.config = config
        self._presets: Dict[str, IndexPreset] = {}

    @property
    def base_dir(self) -> Path:
        """Directory holding one sub-directory per index"""
        return self.root / self.config.state_dir

    def index_dir(self, name: str) -> Path:
        return self.base_dir / name

    def get_preset(self, name: str, strict: bool = True) -> IndexPreset:
        """
        Resolve the preset for an index.

        Built-in presets take their pattern and description from config when
        set there. A name with neither a built-in preset nor a configured
        pattern raises UnknownIndexError, unless ``strict`` is False, in which
        case a preset matching no files is returned (enough to open, search,
        and report on an index that already exists on disk).
        """
        if name in self._presets:
            return self._presets[name]

        index_config = self.config.get_index(name)
        base = DEFAULT_PRESETS.get(name)

        if base is not None:
            preset = base
            if index_config is not None:
                preset = base.with_overrides(
                    pattern=index_config.pattern,
                    ignore=index_config.ignore or None,
                    description=index_config.description
                )
        elif index_config is not None and index_config.pattern:
            preset = IndexPreset(
                name=name,
                pattern=index_config.pattern,
                description=index_config.description or "Custom index",
                ignore=list(index_config.ignore)
            )
        elif not strict:
            return IndexPreset(name=name, pattern="", description="Custom index")
        else:
            raise UnknownIndexError(name)

        self._presets[name] = preset
        return preset

    def enabled_indexes(self) -> List[str]:
        return self.config.get_enabled_indexes()

    def claim(self, relative_path: str, skip: Optional[List[str]] = None) -> Optional[str]:
        """First enabled index whose preset matches the path, or None"""
        for name in self.enabled_indexes():
            if skip and name in skip:
                continue
            try:
                preset = self.get_preset(name)
            except UnknownIndexError:
                logger.debug(f"Skipping index without a pattern: {name}")
                continue
            if preset.matches(relative_path):
                return name
        return None

    def exists(self, name: str) -> bool:
        index_dir = self.index_dir(name)
        return (index_dir / HASHES_FILENAME).is_file() or (index_dir / VECTOR_TABLE_DIRNAME).is_dir()

    def list_indexes(self) -> List[str]:
        """Names of indexes that have state on disk, sorted"""
        if not self.base_dir.is_dir():
            return []
        return sorted(
            entry.name for entry in self.base_dir.iterdir()
            if entry.is_dir() and self.exists(entry.name)
        )
