"""
Line-aligned chunking and archived-content detection
"""

import logging
import re
from pathlib import PurePosixPath
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 1500

ARCHIVE_SEGMENTS = frozenset({"archive", "archived"})

# Markers are only looked for near the top of a file
ARCHIVE_MARKER_LINES = 20
_ARCHIVE_MARKER = re.compile(r"@archived\b|^\s*archived\s*:\s*true\s*$", re.IGNORECASE)


class ChunkingManager:
    """
    Splits file text into bounded, line-aligned chunks.

    Lines are accumulated until adding the next one would push the chunk past
    ``max_chars`` (each line counts its length plus one for the newline).
    A single line longer than ``max_chars`` is kept whole as its own chunk.
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        if max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars

    def chunk(self, content: str) -> List[str]:
        """Split content into chunks; whitespace-only content yields none"""
        if not content.strip():
            return []

        chunks = []
        current: List[str] = []
        current_len = 0

        for line in content.split('\n'):
            if current and current_len + len(line) > self.max_chars:
                chunks.append('\n'.join(current))
                current = []
                current_len = 0
            current.append(line)
            current_len += len(line) + 1

        if current:
            chunks.append('\n'.join(current))

        return chunks


def chunk(content: str, max_chars: int = DEFAULT_MAX_CHARS) -> List[str]:
    """Convenience wrapper around ChunkingManager.chunk"""
    return ChunkingManager(max_chars).chunk(content)


def is_archived(relative_path: str, content: str = "") -> bool:
    """
    True if the file lives under an archive directory or marks itself archived.

    A file marks itself with an ``@archived`` token or an ``archived: true``
    front-matter line within its first lines.
    """
    parts = PurePosixPath(relative_path.replace('\\', '/')).parts[:-1]
    if any(part.lower() in ARCHIVE_SEGMENTS for part in parts):
        return True

    for line in content.split('\n', ARCHIVE_MARKER_LINES)[:ARCHIVE_MARKER_LINES]:
        if _ARCHIVE_MARKER.search(line):
            return True
    return False
