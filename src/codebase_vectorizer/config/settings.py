"""
Vectorizer configuration

Loaded from the ``vectorizer`` section of ``<project>/.vectorizer/config.yaml``.
Anything missing falls back to the built-in defaults, and a config file that
cannot be read or parsed falls back to the defaults entirely.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..index.presets import DEFAULT_PRESETS, build_spec

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = os.path.join(".vectorizer", "config.yaml")

DEFAULT_EMBEDDING_MODEL = "all-MiniLM-L6-v2"
DEFAULT_STATE_DIR = ".vectorizer/vectors"
DEFAULT_DEBOUNCE_MS = 2000
DEFAULT_CHUNK_MAX_CHARS = 1500

DEFAULT_EXCLUDE = [
    'node_modules', '.git', 'dist', 'build', '.vectorizer',
    'vendor', '__pycache__', '.venv', 'venv',
]

# config files are searchable but not auto-indexed unless switched on
_DEFAULT_INDEX_ENABLED = {'code': True, 'docs': True, 'config': False}


@dataclass
class IndexConfig:
    """Per-index settings; unset fields defer to the built-in preset"""

    name: str
    enabled: bool = True
    pattern: Optional[str] = None
    ignore: List[str] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'enabled': self.enabled, 'ignore': self.ignore}
        if self.pattern:
            data['pattern'] = self.pattern
        if self.description:
            data['description'] = self.description
        return data

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]]) -> 'IndexConfig':
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"Index '{name}' settings must be a mapping, got {type(data).__name__}")
        ignore = data.get('ignore') or []
        if isinstance(ignore, str):
            ignore = [ignore]
        return cls(
            name=name,
            enabled=bool(data.get('enabled', _DEFAULT_INDEX_ENABLED.get(name, True))),
            pattern=data.get('pattern'),
            ignore=[str(p) for p in ignore],
            description=data.get('description')
        )


def _default_indexes() -> Dict[str, IndexConfig]:
    return {
        name: IndexConfig(name=name, enabled=_DEFAULT_INDEX_ENABLED.get(name, True))
        for name in DEFAULT_PRESETS
    }


@dataclass
class VectorizerConfig:
    """Resolved settings consumed by the vectorizer service"""

    enabled: bool = True
    auto_index: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    device: Optional[str] = None
    chunk_max_chars: int = DEFAULT_CHUNK_MAX_CHARS
    state_dir: str = DEFAULT_STATE_DIR
    indexes: Dict[str, IndexConfig] = field(default_factory=_default_indexes)
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be >= 0, got {self.debounce_ms}")
        if self.chunk_max_chars <= 0:
            raise ValueError(f"chunk_max_chars must be > 0, got {self.chunk_max_chars}")
        self._exclude_spec = build_spec(self.exclude)

    def get_enabled_indexes(self) -> List[str]:
        return [name for name, cfg in self.indexes.items() if cfg.enabled]

    def get_index(self, name: str) -> Optional[IndexConfig]:
        return self.indexes.get(name)

    def is_excluded(self, relative_path: str) -> bool:
        """True if a project-relative path falls under an exclude rule"""
        return self._exclude_spec.match_file(relative_path.replace('\\', '/'))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'enabled': self.enabled,
            'auto_index': self.auto_index,
            'debounce_ms': self.debounce_ms,
            'embedding_model': self.embedding_model,
            'device': self.device,
            'chunk_max_chars': self.chunk_max_chars,
            'state_dir': self.state_dir,
            'indexes': {name: cfg.to_dict() for name, cfg in self.indexes.items()},
            'exclude': self.exclude
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VectorizerConfig':
        """Create from the ``vectorizer`` mapping, filling gaps with defaults"""
        if not isinstance(data, dict):
            raise ValueError(f"vectorizer settings must be a mapping, got {type(data).__name__}")

        indexes = _default_indexes()
        for name, index_data in (data.get('indexes') or {}).items():
            indexes[str(name)] = IndexConfig.from_dict(str(name), index_data)

        exclude = data.get('exclude')
        return cls(
            enabled=bool(data.get('enabled', True)),
            auto_index=bool(data.get('auto_index', True)),
            debounce_ms=int(data.get('debounce_ms', DEFAULT_DEBOUNCE_MS)),
            embedding_model=str(data.get('embedding_model') or DEFAULT_EMBEDDING_MODEL),
            device=data.get('device'),
            chunk_max_chars=int(data.get('chunk_max_chars', DEFAULT_CHUNK_MAX_CHARS)),
            state_dir=str(data.get('state_dir') or DEFAULT_STATE_DIR),
            indexes=indexes,
            exclude=[str(p) for p in exclude] if exclude is not None else list(DEFAULT_EXCLUDE)
        )

    @classmethod
    def from_file(cls, config_path: str) -> 'VectorizerConfig':
        """Load configuration from a YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        return cls.from_dict(data.get('vectorizer', data) or {})

    def apply_env(self) -> 'VectorizerConfig':
        """Apply VECTORIZER_* environment overrides in place"""
        model = os.getenv("VECTORIZER_EMBEDDING_MODEL")
        if model:
            self.embedding_model = model
        device = os.getenv("VECTORIZER_DEVICE")
        if device:
            self.device = device
        return self

    def save_to_file(self, config_path: str) -> None:
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump({'vectorizer': self.to_dict()}, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved configuration to: {config_path}")


def load_config(project_root: str) -> VectorizerConfig:
    """
    Load ``<project>/.vectorizer/config.yaml``.

    Never raises: a missing file yields defaults quietly, an unreadable or
    invalid one yields defaults with a warning.
    """
    config_path = Path(project_root) / CONFIG_RELATIVE_PATH
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return VectorizerConfig().apply_env()

    try:
        config = VectorizerConfig.from_file(str(config_path))
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config {config_path}: {e}. Using defaults")
        config = VectorizerConfig()

    return config.apply_env()
