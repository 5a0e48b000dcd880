"""
Tests for backend capability checks and the embedding wrapper
"""

from unittest.mock import MagicMock, patch

import pytest

from codebase_vectorizer.core import backend
from codebase_vectorizer.core.embedder import UnavailableEmbedder
from codebase_vectorizer.core.errors import BackendUnavailableError
from codebase_vectorizer.core.models import ChunkRecord
from codebase_vectorizer.core.vector_store import UnavailableVectorStore
from codebase_vectorizer.embedding.sentence_transformer import SentenceTransformerEmbedder


class TestBackendFactory:

    def test_missing_embedding_runtime(self):
        with patch.object(backend, "embedding_backend_installed", return_value=False):
            embedder = backend.create_embedder("all-MiniLM-L6-v2")

        assert isinstance(embedder, UnavailableEmbedder)
        assert not embedder.is_available
        with pytest.raises(BackendUnavailableError, match="pip install sentence-transformers"):
            embedder.generate("text")

    def test_missing_vector_engine(self, tmp_path):
        with patch.object(backend, "vector_backend_installed", return_value=False):
            store = backend.create_vector_store(tmp_path / "chroma")

        assert isinstance(store, UnavailableVectorStore)
        assert store.count() == 0
        assert store.files() == set()
        with pytest.raises(BackendUnavailableError, match="chromadb"):
            store.add([ChunkRecord("a.py", 0, "x", [1.0])])

    def test_installed_backends(self, tmp_path):
        embedder = backend.create_embedder(None, "cpu")
        assert isinstance(embedder, SentenceTransformerEmbedder)
        assert embedder.is_available
        assert not embedder.is_loaded

        store = backend.create_vector_store(tmp_path / "chroma")
        assert store.is_available
        assert (tmp_path / "chroma").is_dir()


def fake_model(dimension=3):
    model = MagicMock()
    model.device = "cpu"
    model.get_sentence_embedding_dimension.return_value = dimension
    encoded = MagicMock()
    encoded.tolist.return_value = [0.6, 0.8, 0.0]
    model.encode.return_value = encoded
    return model


class TestSentenceTransformerEmbedder:

    @patch("sentence_transformers.SentenceTransformer")
    def test_model_loaded_lazily_and_once(self, mock_cls):
        mock_cls.return_value = fake_model()
        embedder = SentenceTransformerEmbedder(device="cpu")
        mock_cls.assert_not_called()

        assert embedder.generate("hello") == [0.6, 0.8, 0.0]
        embedder.generate("again")

        mock_cls.assert_called_once()
        _, kwargs = mock_cls.return_value.encode.call_args
        assert kwargs["normalize_embeddings"] is True

    @patch("sentence_transformers.SentenceTransformer")
    def test_empty_text_is_zero_vector(self, mock_cls):
        mock_cls.return_value = fake_model(dimension=4)
        embedder = SentenceTransformerEmbedder(device="cpu")

        assert embedder.generate("   ") == [0.0, 0.0, 0.0, 0.0]
        mock_cls.return_value.encode.assert_not_called()

    @patch("sentence_transformers.SentenceTransformer")
    def test_unload_then_reload(self, mock_cls):
        mock_cls.return_value = fake_model()
        embedder = SentenceTransformerEmbedder(device="cpu")
        embedder.generate("x")

        embedder.unload()
        assert not embedder.is_loaded

        embedder.generate("y")
        assert mock_cls.call_count == 2

    def test_force_cpu_env(self, monkeypatch):
        monkeypatch.setenv("VECTORIZER_FORCE_CPU", "1")
        embedder = SentenceTransformerEmbedder(device="cuda")
        assert embedder.device == "cpu"
        assert embedder.get_model_info()["loaded"] is False
