"""
Sentence Transformer Embedder for codebase-vectorizer

Wraps a local sentence-transformers model. The model is loaded on first use
and can be unloaded between bulk operations to release memory.
"""

import gc
import logging
import os
from typing import List, Optional

from ..core.embedder import Embedder

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


def _check_mps_stability() -> bool:
    """
    Check if MPS (Apple Silicon GPU) is usable for embedding operations.

    MPS can crash with some PyTorch/sentence-transformers combinations, so a
    small tensor operation is run before trusting it.
    """
    try:
        import torch
        if not (hasattr(torch.backends, 'mps') and torch.backends.mps.is_available()):
            return False

        torch_version = tuple(int(x) for x in torch.__version__.split('.')[:2])
        if torch_version < (2, 1):
            logger.warning(f"PyTorch {torch.__version__} has known MPS stability issues. Consider upgrading to 2.1+")

        test_tensor = torch.randn(10, 10, device='mps')
        _ = test_tensor @ test_tensor.T
        if hasattr(torch.mps, 'synchronize'):
            torch.mps.synchronize()
        del test_tensor
        if hasattr(torch.mps, 'empty_cache'):
            torch.mps.empty_cache()

        return True
    except Exception as e:
        logger.warning(f"MPS stability check failed: {e}")
        return False


def _release_device_memory(device: str) -> None:
    """Return cached allocator memory to the GPU driver"""
    try:
        import torch
        if 'cuda' in device and torch.cuda.is_available():
            torch.cuda.empty_cache()
        elif 'mps' in device and hasattr(torch, 'mps') and hasattr(torch.mps, 'empty_cache'):
            torch.mps.empty_cache()
    except Exception as e:
        logger.debug(f"Could not release {device} memory: {e}")


class SentenceTransformerEmbedder(Embedder):
    """
    SentenceTransformer-based implementation of Embedder.

    Only one model instance is held at a time and it is not used for
    concurrent inference; callers embed one text after another.
    """

    def __init__(self,
                 model_name: str = DEFAULT_MODEL,
                 device: Optional[str] = None,
                 cache_folder: Optional[str] = None):
        """
        Args:
            model_name: Name of the sentence transformer model
            device: 'cpu', 'cuda', 'cuda:0', 'mps' or None to auto-detect
            cache_folder: Folder to cache downloaded models
        """
        self.model_name = model_name
        self.cache_folder = cache_folder

        if os.environ.get('VECTORIZER_FORCE_CPU', '').lower() in ('1', 'true', 'yes'):
            if device not in (None, 'cpu'):
                logger.info(f"VECTORIZER_FORCE_CPU is set, using CPU instead of {device}")
            device = 'cpu'
        elif device == 'mps' and not _check_mps_stability():
            logger.warning(
                "MPS stability check failed. Falling back to CPU. "
                "Set VECTORIZER_FORCE_CPU=1 to always use CPU."
            )
            device = 'cpu'

        self.device = device
        self._model = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def model(self):
        """The loaded SentenceTransformer, loading it on first access"""
        if self._model is None:
            self._model = self._load_model()
        return self._model

    def _load_model(self):
        from sentence_transformers import SentenceTransformer

        logger.info(f"Loading embedding model: {self.model_name} on device: {self.device or 'auto'} (first load can take ~30s)")
        try:
            model = SentenceTransformer(
                self.model_name,
                device=self.device,
                cache_folder=self.cache_folder
            )
        except Exception as e:
            logger.error(f"Failed to load model {self.model_name}: {e}")
            raise

        logger.info(f"Model loaded on {model.device}. Embedding dimension: {model.get_sentence_embedding_dimension()}")
        return model

    def unload(self) -> None:
        """Drop the model and give its memory back"""
        if self._model is None:
            return
        device = str(self._model.device).lower()
        self._model = None
        gc.collect()
        _release_device_memory(device)
        logger.info(f"Unloaded embedding model: {self.model_name}")

    def generate(self, text: str) -> List[float]:
        """
        Generate a normalized embedding for a single text.

        Empty text maps to the zero vector without touching the model twice.
        """
        model = self.model
        if not text or not text.strip():
            return [0.0] * model.get_sentence_embedding_dimension()

        embedding = model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False
        )
        self._sync_mps_if_needed()
        return embedding.tolist()

    def generate_batch(self, texts: List[str], batch_size: int = 32) -> List[List[float]]:
        """Generate embeddings for a batch of texts, keeping input order"""
        if not texts:
            return []

        model = self.model
        dimension = model.get_sentence_embedding_dimension()
        valid = [(i, t) for i, t in enumerate(texts) if t and t.strip()]
        result = [[0.0] * dimension for _ in texts]
        if not valid:
            return result

        embeddings = model.encode(
            [t for _, t in valid],
            convert_to_numpy=True,
            normalize_embeddings=True,
            batch_size=batch_size,
            show_progress_bar=False
        )
        self._sync_mps_if_needed()

        for (i, _), embedding in zip(valid, embeddings):
            result[i] = embedding.tolist()
        return result

    def _sync_mps_if_needed(self) -> None:
        """Wait for queued MPS work so results are complete before returning"""
        if self._model is not None and 'mps' in str(self._model.device).lower():
            try:
                import torch
                if hasattr(torch.mps, 'synchronize'):
                    torch.mps.synchronize()
            except Exception as e:
                logger.debug(f"MPS synchronize failed: {e}")

    def get_dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def get_model_info(self) -> dict:
        info = {
            "model_name": self.model_name,
            "device": self.device or "auto",
            "loaded": self.is_loaded,
        }
        if self._model is not None:
            info["dimension"] = self._model.get_sentence_embedding_dimension()
            info["device"] = str(self._model.device)
        return info
