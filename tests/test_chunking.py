"""
Tests for line-aligned chunking and archived detection
"""

import pytest

from codebase_vectorizer.search.chunking import ChunkingManager, chunk, is_archived


class TestChunking:
    """Chunk boundaries and determinism"""

    def test_whitespace_only_yields_no_chunks(self):
        assert chunk("") == []
        assert chunk("   \n\n\t\n") == []

    def test_short_content_is_single_chunk(self):
        content = "def hello():\n    return 'hi'\n"
        assert chunk(content) == [content]

    def test_lines_are_grouped_up_to_max_chars(self):
        # 99 chars + newline = 100 per line, so 15 lines fit in 1500
        content = "\n".join("x" * 99 for _ in range(50))
        chunks = chunk(content, max_chars=1500)

        assert [c.count("\n") + 1 for c in chunks] == [15, 15, 15, 5]

    def test_chunks_rejoin_to_original(self):
        content = "\n".join(f"line {i} " + "y" * (i % 40) for i in range(300))
        chunks = chunk(content, max_chars=200)
        assert "\n".join(chunks) == content

    def test_chunks_respect_limit_unless_single_line(self):
        content = "\n".join("z" * (i % 90) for i in range(200))
        for c in chunk(content, max_chars=256):
            assert len(c) <= 256 or "\n" not in c

    def test_overlong_line_is_its_own_chunk(self):
        long_line = "a" * 2000
        content = f"x\n{long_line}\ny"
        assert chunk(content, max_chars=1500) == ["x", long_line, "y"]

    def test_deterministic(self):
        content = "\n".join(f"row {i}" for i in range(1000))
        assert chunk(content, 300) == chunk(content, 300)

    def test_manager_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            ChunkingManager(0)


class TestArchivedDetection:
    """Archive directories and in-file markers"""

    @pytest.mark.parametrize("path", [
        "archive/old.md",
        "docs/Archived/notes.md",
        "src/archive/legacy/module.py",
    ])
    def test_archive_directory(self, path):
        assert is_archived(path)

    def test_archive_in_file_name_is_not_a_directory(self):
        assert not is_archived("docs/archive.md")
        assert not is_archived("src/archiver.py")

    def test_marker_near_top(self):
        assert is_archived("notes.md", "# Notes\n@archived\nbody")
        assert is_archived("post.md", "---\ntitle: Old\narchived: true\n---\ntext")

    def test_marker_too_far_down_is_ignored(self):
        content = "\n".join(["filler"] * 25 + ["@archived"])
        assert not is_archived("notes.md", content)

    def test_archived_false_front_matter(self):
        assert not is_archived("post.md", "---\narchived: false\n---")
