"""
Value types shared by the selector, corpus sources and retrievers.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np

Vector = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True, eq=False)
class Candidate:
    """A corpus entry: an approved copy line and its precomputed embedding."""

    label: str
    """The copy line returned to callers when this entry ranks"""

    vector: Vector
    """Embedding of the copy line"""


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate label with its cosine similarity to the query."""

    label: str
    score: float


@dataclass(frozen=True)
class TopKResult:
    """Immutable snapshot of a finished selection, best match first."""

    entries: Tuple[ScoredCandidate, ...] = field(default_factory=tuple)

    def labels(self) -> List[str]:
        return [entry.label for entry in self.entries]

    def scores(self) -> List[float]:
        return [entry.score for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ScoredCandidate]:
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]
