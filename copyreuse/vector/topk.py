"""
Bounded-memory streaming top-K selection by cosine similarity.

The selector consumes a one-pass stream of candidates and keeps only the k best
seen so far in a binary min-heap, so memory is O(k) regardless of corpus size
and each offer costs O(log k).
"""

import heapq
import numbers
from typing import Iterable, List, Tuple

from ..core.errors import DimensionMismatchError, InvalidArgumentError, InvalidStateError
from .similarity import as_vector, scaled_cosine, unit_vector
from .types import Candidate, ScoredCandidate, TopKResult, Vector

DEFAULT_TOP_K = 10

# Heap entry: (score, -arrival, label). The heap root is the weakest held entry;
# among equal scores the latest arrival sits at the root and is evicted first.
_HeapEntry = Tuple[float, int, str]


class StreamingTopKSelector:
    """
    Keep the k candidates most similar to a fixed query vector.

    A candidate is admitted while fewer than k entries are held; after that it
    must strictly beat the weakest held score, which it then evicts. Equal
    scores never evict, so the earlier arrival wins ties.

    Reuse: once finish() has been called, offer() raises InvalidStateError
    until reset() starts a new pass.
    """

    def __init__(self, query_vector: Vector, k: int = DEFAULT_TOP_K):
        if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k <= 0:
            raise InvalidArgumentError(f"k must be a positive integer, got {k!r}")
        if query_vector is None:
            raise InvalidArgumentError("query vector must not be empty")

        query = as_vector(query_vector).copy()
        if query.shape[0] == 0:
            raise InvalidArgumentError("query vector must not be empty")
        query.setflags(write=False)

        self.k = int(k)
        self._query = query
        self._unit_query = unit_vector(query)
        self._heap: List[_HeapEntry] = []
        self._arrivals = 0
        self._finished = False
        self._result = None

    @property
    def dimension(self) -> int:
        return self._query.shape[0]

    def __len__(self) -> int:
        return len(self._heap)

    def offer(self, candidate: Candidate) -> bool:
        """
        Score a candidate and admit it if it belongs in the current top k.

        Returns:
            True if the candidate was admitted to the working set

        Raises:
            DimensionMismatchError: candidate vector length differs from the query's
            InvalidStateError: the pass has already been finished
        """
        if self._finished:
            raise InvalidStateError("selector already finished; call reset() to start a new pass")

        candidate_vector = as_vector(candidate.vector)
        if candidate_vector.shape[0] != self.dimension:
            raise DimensionMismatchError(
                expected=self.dimension,
                actual=candidate_vector.shape[0],
                label=candidate.label,
            )
        score = scaled_cosine(self._unit_query, candidate_vector)

        arrival = self._arrivals
        self._arrivals += 1
        entry = (score, -arrival, candidate.label)

        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True
        if score > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def offer_many(self, candidates: Iterable[Candidate]) -> int:
        """Offer every candidate from an iterable in order; returns how many were consumed."""
        consumed = 0
        for candidate in candidates:
            self.offer(candidate)
            consumed += 1
        return consumed

    def finish(self) -> TopKResult:
        """Return the held entries best first; repeated calls return an equal result."""
        if self._result is None:
            ordered = sorted(self._heap, key=lambda item: (-item[0], -item[1]))
            self._result = TopKResult(
                entries=tuple(ScoredCandidate(label=label, score=score) for score, _, label in ordered)
            )
            self._finished = True
        return self._result

    def reset(self) -> None:
        """Discard the working set and begin a new pass with the same query and k."""
        self._heap = []
        self._arrivals = 0
        self._finished = False
        self._result = None


def select_top_k(query_vector: Vector, candidates: Iterable[Candidate], k: int = DEFAULT_TOP_K) -> TopKResult:
    """Run a single selection pass over candidates and return the finished result."""
    selector = StreamingTopKSelector(query_vector, k)
    selector.offer_many(candidates)
    return selector.finish()
