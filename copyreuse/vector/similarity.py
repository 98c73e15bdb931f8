"""
Cosine similarity with the degenerate-vector policy used for ranking.
"""

import math
from typing import Optional

import numpy as np

from ..core.errors import DimensionMismatchError
from .types import Vector

# Score given to zero-magnitude or non-finite comparisons so they never outrank a real match
DEGENERATE_SCORE = float("-inf")


def as_vector(values: Vector) -> np.ndarray:
    """Return values as a 1-D float64 array without copying existing float64 arrays."""
    return np.asarray(values, dtype=np.float64).reshape(-1)


def unit_vector(vector: np.ndarray) -> Optional[np.ndarray]:
    """
    Scale vector to unit length, or None for zero-magnitude and non-finite vectors.

    Components are divided by the largest magnitude first so that neither the
    squares of huge values overflow nor the squares of tiny ones underflow.
    """
    if vector.shape[0] == 0:
        return None
    peak = float(np.max(np.abs(vector)))
    if peak == 0.0 or not math.isfinite(peak):
        return None
    scaled = vector / peak
    return scaled / math.sqrt(float(np.dot(scaled, scaled)))


def scaled_cosine(unit_query: Optional[np.ndarray], other: np.ndarray) -> float:
    """
    Cosine similarity against a query already reduced by unit_vector().

    Zero magnitudes and NaN/inf inputs score DEGENERATE_SCORE instead of
    propagating NaN into comparisons.
    """
    if unit_query is None:
        return DEGENERATE_SCORE
    unit_other = unit_vector(other)
    if unit_other is None:
        return DEGENERATE_SCORE
    score = float(np.dot(unit_query, unit_other))
    if not math.isfinite(score):
        return DEGENERATE_SCORE
    return score


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    dot(a, b) / (||a|| * ||b||).

    Raises:
        DimensionMismatchError: if the vectors differ in length
    """
    left = as_vector(a)
    right = as_vector(b)
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatchError(expected=left.shape[0], actual=right.shape[0])
    return scaled_cosine(unit_vector(left), right)
