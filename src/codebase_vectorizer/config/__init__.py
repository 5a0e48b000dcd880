"""Configuration classes for codebase-vectorizer"""

from .settings import VectorizerConfig, IndexConfig, load_config, DEFAULT_EXCLUDE

__all__ = [
    "VectorizerConfig",
    "IndexConfig",
    "load_config",
    "DEFAULT_EXCLUDE",
]
