"""
Value types shared by the embedder, the ranker and the document store.
"""

from dataclasses import dataclass
from typing import Any, Generic, List, Sequence, Tuple, TypeVar

P = TypeVar("P")

Vector = List[float]

# A (vector, payload) pair offered to the ranker
Candidate = Tuple[Sequence[float], Any]


@dataclass(frozen=True)
class RankedResult(Generic[P]):
    """Represents a ranked match."""

    payload: P
    """The candidate's payload, passed through untouched"""

    score: float
    """Cosine similarity of the match (-1..1)"""

    index: int
    """Position of the candidate in the input sequence"""
