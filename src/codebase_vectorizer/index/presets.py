"""
Index presets: which files belong to which index

A preset pairs a glob pattern (``**/*.{py,js}`` style, brace alternatives
allowed) with ignore globs and a human description. Matching uses
gitignore semantics from pathspec (GitIgnoreSpec).
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pathspec

logger = logging.getLogger(__name__)

_BRACE_GROUP = re.compile(r"\{([^{}]*)\}")

CODE_EXTENSIONS = [
    'js', 'ts', 'jsx', 'tsx', 'mjs', 'cjs', 'py', 'go', 'rs', 'java', 'kt', 'swift',
    'c', 'cpp', 'h', 'hpp', 'cs', 'rb', 'php', 'scala', 'clj',
]
DOCS_EXTENSIONS = ['md', 'mdx', 'txt', 'rst', 'adoc']
CONFIG_EXTENSIONS = ['yaml', 'yml', 'json', 'toml', 'ini', 'env', 'xml']


def expand_braces(pattern: str) -> List[str]:
    """
    Expand ``{a,b}`` alternatives into separate patterns.

    ``**/*.{py,js}`` -> ``['**/*.py', '**/*.js']``. Groups are expanded left
    to right; a pattern without braces is returned unchanged.
    """
    match = _BRACE_GROUP.search(pattern)
    if not match:
        return [pattern]

    expanded = []
    head, tail = pattern[:match.start()], pattern[match.end():]
    for option in match.group(1).split(','):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def build_spec(patterns: Iterable[str]) -> pathspec.PathSpec:
    lines = []
    for pattern in patterns:
        lines.extend(expand_braces(pattern))
    return pathspec.GitIgnoreSpec.from_lines(lines)


@dataclass
class IndexPreset:
    """File-matching rules for one named index"""

    name: str
    pattern: str
    description: str = "Custom index"
    ignore: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._pattern_spec = build_spec([self.pattern])
        self._ignore_spec = build_spec(self.ignore)

    def is_ignored(self, relative_path: str) -> bool:
        return self._ignore_spec.match_file(relative_path.replace('\\', '/'))

    def matches(self, relative_path: str) -> bool:
        """True if the project-relative path belongs to this index"""
        if self.is_ignored(relative_path):
            return False
        return self._pattern_spec.match_file(relative_path.replace('\\', '/'))

    def with_overrides(self, pattern: Optional[str] = None,
                       ignore: Optional[List[str]] = None,
                       description: Optional[str] = None) -> "IndexPreset":
        return IndexPreset(
            name=self.name,
            pattern=pattern or self.pattern,
            description=description or self.description,
            ignore=list(ignore) if ignore is not None else list(self.ignore)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'pattern': self.pattern,
            'description': self.description,
            'ignore': self.ignore
        }


def _ext_pattern(extensions: List[str]) -> str:
    return "**/*.{" + ",".join(extensions) + "}"


DEFAULT_PRESETS: Dict[str, IndexPreset] = {
    'code': IndexPreset('code', _ext_pattern(CODE_EXTENSIONS), 'Source code files'),
    'docs': IndexPreset('docs', _ext_pattern(DOCS_EXTENSIONS), 'Documentation files'),
    'config': IndexPreset('config', _ext_pattern(CONFIG_EXTENSIONS), 'Configuration files'),
}


def walk_matching_files(root: Path,
                        preset: IndexPreset,
                        ignore: Optional[Iterable[str]] = None,
                        skip_dirs: Optional[Iterable[Path]] = None) -> List[Path]:
    """
    Enumerate files under root that belong to the preset.

    Directories matched by an ignore pattern, and any directory in
    ``skip_dirs``, are not descended into. The result is sorted by relative
    path so enumeration order is stable.
    """
    root = Path(root)
    ignore_spec = build_spec(list(ignore or []))
    skipped = {Path(d).resolve() for d in (skip_dirs or [])}

    matches = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        kept = []
        for d in dirnames:
            rel = f"{prefix}{d}"
            if (current / d).resolve() in skipped:
                continue
            if ignore_spec.match_file(rel + "/") or preset.is_ignored(rel + "/"):
                continue
            kept.append(d)
        dirnames[:] = sorted(kept)

        for name in filenames:
            rel = f"{prefix}{name}"
            if ignore_spec.match_file(rel):
                continue
            if preset.matches(rel):
                matches.append(current / name)

    matches.sort(key=lambda p: p.relative_to(root).as_posix())
    logger.debug(f"[{preset.name}] Found {len(matches)} matching files under {root}")
    return matches
