"""
Embedding providers. Turn a piece of UI copy into a fixed-dimensionality vector.
Every provider failure surfaces as EmbeddingUnavailableError.
"""

from abc import ABC, abstractmethod
import hashlib
import json
import os
from typing import Optional

import numpy as np
import requests

from ..core.errors import EmbeddingUnavailableError


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    Expands a SHA-256 digest stream of the text into a unit-length vector, so
    identical text always yields an identical vector without any model or
    network access.
    """

    def __init__(self, dimension: int = 1536):
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self.dimension = dimension

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector using hash function."""
        vector = []
        counter = 0
        seed = text.encode("utf-8")
        while len(vector) < self.dimension:
            digest = hashlib.sha256(seed + counter.to_bytes(4, "big")).digest()
            for i in range(0, len(digest), 4):
                value = int.from_bytes(digest[i:i + 4], "big")
                # Map to [-1, 1]
                vector.append((value / 2**32) * 2 - 1)
            counter += 1

        array = np.array(vector[:self.dimension])
        norm = np.linalg.norm(array)
        if norm > 0:
            array = array / norm
        return array.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        try:
            embedding = self.model.encode(text, convert_to_tensor=False)
        except Exception as e:
            raise EmbeddingUnavailableError(f"Sentence transformer model {self.model_name} failed: {e}") from e
        return np.asarray(embedding, dtype=float).tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class OpenAIEmbedding(IEmbeddingProvider):
    """Embedding provider for any OpenAI-compatible /embeddings endpoint."""

    DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        model: str = "text-embedding-ada-002",
        base_url: str = "https://api.openai.com/v1",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        dimension: Optional[int] = None,
    ):
        self.model = model
        self.base_url = base_url
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.timeout = timeout
        self._dimension = dimension or self.DIMENSIONS.get(model)

    def embed_text(self, text: str) -> list[float]:
        """Request a single embedding; any transport or payload problem is an EmbeddingUnavailableError."""
        url = f"{self.base_url.rstrip('/')}/embeddings"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {"model": self.model, "input": text}

        try:
            response = requests.post(url, headers=headers, timeout=self.timeout, data=json.dumps(payload))
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise EmbeddingUnavailableError(f"Embedding request to {url} failed: {e}") from e

        try:
            embedding = data["data"][0]["embedding"]
            vector = [float(value) for value in embedding]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingUnavailableError(f"Unexpected embedding response shape from {url}") from e

        if not vector:
            raise EmbeddingUnavailableError(f"Empty embedding returned by model {self.model}")
        if self._dimension is None:
            self._dimension = len(vector)
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            raise EmbeddingUnavailableError(f"Dimension of model {self.model} is unknown until the first embedding")
        return self._dimension
