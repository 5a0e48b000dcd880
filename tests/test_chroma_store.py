"""
Tests for the Chroma-backed vector store

Runs against a real persistent Chroma client in a temporary directory.
"""

import unittest
import tempfile
import shutil
import os

from codebase_vectorizer.core.models import ChunkRecord
from codebase_vectorizer.storage.chroma import ChromaVectorStore


def unit(*values):
    norm = sum(v * v for v in values) ** 0.5
    return [v / norm for v in values]


class TestChromaVectorStore(unittest.TestCase):
    """CRUD and query behaviour of one index's vector table"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = ChromaVectorStore(persist_directory=os.path.join(self.temp_dir, "chroma"))

    def tearDown(self):
        try:
            shutil.rmtree(self.temp_dir)
        except Exception:
            pass

    def _records(self, file, vectors, archived=False):
        return [
            ChunkRecord(file, i, f"{file} chunk {i}", vector, archived)
            for i, vector in enumerate(vectors)
        ]

    def test_search_on_empty_table(self):
        self.assertEqual(self.store.search(unit(1, 0, 0), 5), [])
        self.assertEqual(self.store.count(), 0)

    def test_add_and_search(self):
        self.store.add(self._records("a.py", [unit(1, 0, 0), unit(0, 1, 0)]))
        self.store.add(self._records("b.md", [unit(0, 0, 1)], archived=True))

        hits = self.store.search(unit(1, 0.1, 0), 10)

        # top_k larger than the table is clamped
        self.assertEqual(len(hits), 3)
        self.assertEqual((hits[0].file, hits[0].chunk_index), ("a.py", 0))
        self.assertEqual(hits[0].content, "a.py chunk 0")
        self.assertEqual([h.distance for h in hits], sorted(h.distance for h in hits))
        self.assertTrue(next(h for h in hits if h.file == "b.md").archived)

    def test_delete_file(self):
        self.store.add(self._records("a.py", [unit(1, 0, 0), unit(0, 1, 0)]))
        self.store.add(self._records("b.py", [unit(0, 0, 1)]))

        self.assertEqual(self.store.delete_file("a.py"), 2)
        self.assertEqual(self.store.delete_file("a.py"), 0)
        self.assertEqual(self.store.files(), {"b.py"})

    def test_replace_file(self):
        self.store.add(self._records("a.py", [unit(1, 0, 0), unit(0, 1, 0), unit(0, 0, 1)]))
        self.store.replace_file("a.py", self._records("a.py", [unit(1, 1, 0)]))
        self.assertEqual(self.store.count(), 1)

    def test_clear_and_reopen(self):
        self.store.add(self._records("a.py", [unit(1, 0, 0)]))
        self.store.clear()
        self.assertEqual(self.store.count(), 0)

        self.store.add(self._records("b.py", [unit(0, 1, 0)]))
        reopened = ChromaVectorStore(persist_directory=self.store.persist_directory)
        self.assertEqual(reopened.files(), {"b.py"})


if __name__ == "__main__":
    unittest.main()
