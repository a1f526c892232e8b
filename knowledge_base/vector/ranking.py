"""
Cosine-similarity ranking over a candidate snapshot.

A linear scan: O(N*D) per call, no index. Results are ordered by descending
score with ties kept in candidate order, so equal inputs always rank equally.
"""

from concurrent.futures import ThreadPoolExecutor
import heapq
import math
import numbers
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import DimensionMismatch, InvalidArgument
from .types import Candidate, RankedResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Zero magnitude on either side gives 0.0. Raises DimensionMismatch when the
    lengths differ.
    """
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)
    if vec_a.shape != vec_b.shape:
        raise DimensionMismatch(vec_a.size, vec_b.size)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Rounding can push |similarity| a hair past 1
    return max(-1.0, min(1.0, similarity))


def _validate(k, threshold):
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidArgument(f"k must be a positive integer, got {k!r}")
    if k <= 0:
        raise InvalidArgument(f"k must be a positive integer, got {k}")
    if threshold is not None:
        if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real):
            raise InvalidArgument(f"threshold must be a number, got {threshold!r}")
        if not math.isfinite(threshold):
            raise InvalidArgument(f"threshold must be finite, got {threshold}")


def _score_shard(query: np.ndarray, shard: Iterable[Tuple[int, Candidate]], k: int,
                 threshold: Optional[float]) -> List[RankedResult]:
    scored = []
    for index, (vector, payload) in shard:
        score = cosine_similarity(query, vector)
        if threshold is not None and score < threshold:
            continue
        scored.append(RankedResult(payload=payload, score=score, index=index))

    scored.sort(key=_order)
    return scored[:k]


def _order(result: RankedResult):
    return (-result.score, result.index)


def rank(query: Sequence[float], candidates: Sequence[Candidate], k: int,
         threshold: Optional[float] = None, workers: int = 1) -> List[RankedResult]:
    """Rank ``candidates`` against ``query`` and return the best ``k``.

    Args:
        query: The query vector
        candidates: Sequence of (vector, payload) pairs, in store order
        k: Maximum number of results, must be positive
        threshold: Drop candidates scoring strictly below this value
        workers: Split the scan across this many threads

    Returns:
        RankedResult list, best first. Equal scores keep candidate order.

    Raises:
        InvalidArgument: k or threshold is invalid
        DimensionMismatch: a candidate's length differs from the query's
    """
    _validate(k, threshold)
    query_vec = np.asarray(query, dtype=np.float64)
    indexed = list(enumerate(candidates))

    if workers <= 1 or len(indexed) < 2 * workers:
        return _score_shard(query_vec, indexed, k, threshold)

    # Each shard keeps its own top-k; indices travel with the results so the
    # merge reproduces the single-threaded order.
    size = math.ceil(len(indexed) / workers)
    shards = [indexed[i:i + size] for i in range(0, len(indexed), size)]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        partials = list(pool.map(lambda shard: _score_shard(query_vec, shard, k, threshold), shards))

    return list(heapq.merge(*partials, key=_order))[:k]
