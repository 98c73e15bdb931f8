"""
Retrieval strategies. Each returns the top-K corpus lines for a query vector.

ScanRetriever and RemoteScanRetriever run the streaming top-K selector over
the corpus on every request; FaissRetriever answers from an exact inner-product
index built once at startup.
"""

from abc import ABC, abstractmethod
import numbers
import time
from typing import Callable, Iterable, Union

import numpy as np

from ..core.errors import DimensionMismatchError, InvalidArgumentError
from .corpus import CorpusHandle, DEFAULT_CHUNK_SIZE, stream_remote_corpus
from .similarity import as_vector, unit_vector
from .topk import DEFAULT_TOP_K, StreamingTopKSelector
from .types import Candidate, ScoredCandidate, TopKResult, Vector
from util.logging import logger

CandidateSource = Union[Iterable[Candidate], Callable[[], Iterable[Candidate]]]


class IRetriever(ABC):
    """Abstract interface for reuse-candidate retrieval."""

    name = "retriever"

    @abstractmethod
    def retrieve(self, query_vector: Vector, top_k: int = DEFAULT_TOP_K) -> TopKResult:
        """Return at most top_k corpus lines ranked by cosine similarity to the query."""
        pass

    def describe(self) -> dict:
        """Summary used by the health endpoint."""
        return {"retriever": self.name}


class ScanRetriever(IRetriever):
    """Brute-force scan of a candidate source with the streaming selector."""

    name = "scan"

    def __init__(self, source: CandidateSource):
        """
        Args:
            source: a re-iterable candidate collection (e.g. a CorpusHandle), or
                a zero-argument callable returning a fresh one-pass stream per call
        """
        self._source = source

    def _open_stream(self) -> Iterable[Candidate]:
        if callable(self._source):
            return self._source()
        return self._source

    def retrieve(self, query_vector: Vector, top_k: int = DEFAULT_TOP_K) -> TopKResult:
        start_time = time.time()
        selector = StreamingTopKSelector(query_vector, top_k)
        stream = self._open_stream()
        try:
            scanned = selector.offer_many(stream)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
        result = selector.finish()
        logger.log_retrieval(self.name, top_k, len(result), start_time, time.time(), details={"scanned": scanned})
        return result

    def describe(self) -> dict:
        info = super().describe()
        if isinstance(self._source, CorpusHandle):
            info.update({"corpus_size": len(self._source), "dimension": self._source.dimension})
        return info


class RemoteScanRetriever(ScanRetriever):
    """Re-streams a remote corpus for every request; never holds more than k entries."""

    name = "remote"

    def __init__(self, url: str, timeout: float = 30.0, chunk_size: int = DEFAULT_CHUNK_SIZE, session=None):
        self.url = url
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session
        super().__init__(self._stream)

    def _stream(self) -> Iterable[Candidate]:
        return stream_remote_corpus(self.url, timeout=self.timeout, chunk_size=self.chunk_size, session=self.session)

    def describe(self) -> dict:
        info = super().describe()
        info["corpus_url"] = self.url
        return info


class FaissRetriever(IRetriever):
    """
    Exact FAISS inner-product index over normalized corpus vectors.

    Zero vectors are left out of the index, so they never rank.
    """

    name = "faiss"

    def __init__(self, corpus: CorpusHandle):
        try:
            import faiss
        except ImportError:
            raise ImportError("FAISS not installed. Please install faiss-cpu package.")

        self.faiss = faiss
        self.dimension = corpus.dimension
        self.corpus_size = len(corpus)
        self.labels = []

        if self.dimension is None:
            self.index = None
            return

        # Create a flat index (inner product metric for cosine similarity)
        self.index = faiss.IndexFlatIP(self.dimension)

        vectors_to_add = []
        for candidate in corpus:
            vector = as_vector(candidate.vector)
            if vector.shape[0] != self.dimension:
                raise DimensionMismatchError(expected=self.dimension, actual=vector.shape[0], label=candidate.label)
            unit = unit_vector(vector)
            if unit is None:
                continue
            vectors_to_add.append(unit)
            self.labels.append(candidate.label)

        if vectors_to_add:
            self.index.add(np.vstack(vectors_to_add).astype(np.float32))

    def retrieve(self, query_vector: Vector, top_k: int = DEFAULT_TOP_K) -> TopKResult:
        if isinstance(top_k, bool) or not isinstance(top_k, numbers.Integral) or top_k <= 0:
            raise InvalidArgumentError(f"k must be a positive integer, got {top_k!r}")
        query = as_vector(query_vector)
        if query.shape[0] == 0:
            raise InvalidArgumentError("query vector must not be empty")

        start_time = time.time()
        if self.index is None or not self.index.ntotal:
            return TopKResult()
        if query.shape[0] != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=query.shape[0])

        unit_query = unit_vector(query)
        if unit_query is None:
            return TopKResult()

        query_array = np.array(unit_query, dtype=np.float32).reshape(1, -1)
        scores, indices = self.index.search(query_array, min(int(top_k), self.index.ntotal))

        entries = []
        for score, position in zip(scores[0], indices[0]):
            if position < 0:
                continue
            entries.append(ScoredCandidate(label=self.labels[position], score=float(score)))

        result = TopKResult(entries=tuple(entries))
        logger.log_retrieval(self.name, top_k, len(result), start_time, time.time())
        return result

    def describe(self) -> dict:
        info = super().describe()
        info.update({
            "corpus_size": self.corpus_size,
            "indexed": self.index.ntotal if self.index is not None else 0,
            "dimension": self.dimension,
        })
        return info
