"""
Per-index content hash cache

Persists ``relative path -> content hash`` as a flat JSON object. An entry is
written only after the matching chunk records were stored, so a present entry
means "indexed at this content".
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

HASHES_FILENAME = "hashes.json"


class HashCache:
    """Mapping of relative file path to the SHA-256 of its last indexed content"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._hashes: Dict[str, str] = {}

    @staticmethod
    def compute_hash(content: str) -> str:
        """Compute SHA-256 hash of content"""
        return hashlib.sha256(content.encode('utf-8')).hexdigest()

    def load(self) -> "HashCache":
        """Read the cache from disk; a missing or unreadable file means empty"""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read hash cache {self.path}: {e}. Starting empty")
            data = {}

        if not isinstance(data, dict):
            logger.warning(f"Hash cache {self.path} is not a JSON object. Starting empty")
            data = {}

        self._hashes = {str(k): str(v) for k, v in data.items()}
        return self

    def save(self) -> None:
        """Write the cache atomically (temp file + rename)"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self._hashes, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, relative_path: str) -> Optional[str]:
        return self._hashes.get(relative_path)

    def set(self, relative_path: str, content_hash: str) -> None:
        self._hashes[relative_path] = content_hash

    def remove(self, relative_path: str) -> bool:
        return self._hashes.pop(relative_path, None) is not None

    def paths(self) -> List[str]:
        """Snapshot of cached paths in insertion order"""
        return list(self._hashes)

    def clear(self) -> None:
        self._hashes = {}
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __len__(self) -> int:
        return len(self._hashes)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._hashes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._hashes))
