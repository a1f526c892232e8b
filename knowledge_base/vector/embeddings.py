"""
Deterministic pseudo-embeddings.

Text is hashed token by token into a signed 32-bit integer and spread over
the vector with ``sin``. The output carries no semantics; identical text maps
to bit-identical vectors, which is all search relies on.
"""

from abc import ABC, abstractmethod
import math
from typing import List

EMBED_MODES = ("words", "whole")

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


def rolling_hash(token: str) -> int:
    """Return ``h = h*31 + ord(c)`` over ``token`` with signed 32-bit wraparound."""
    h = 0
    for char in token:
        h = (h * 31 + ord(char)) & _INT32_MASK
        if h & _INT32_SIGN:
            h -= 1 << 32
    return h


def tokenize(text: str, mode: str = "words") -> List[str]:
    """Split text into hash tokens.

    ``words`` lowercases and splits on whitespace; ``whole`` keeps the string
    as one token. Never returns an empty list.
    """
    if mode == "whole":
        return [text]
    if mode != "words":
        raise ValueError(f"Unknown embedding mode: {mode}")
    return text.lower().split() or [""]


def hash_vector(h: int, dimension: int) -> List[float]:
    return [math.sin(h * (i + 1)) * 0.5 + 0.5 for i in range(dimension)]


def embed(text: str, dimension: int = 10, mode: str = "words") -> List[float]:
    """Embed ``text`` into ``dimension`` floats in [0, 1].

    The first token initializes the vector. Each later token is folded in as
    ``(acc + value) / 2``, so the result is a running average weighted towards
    the last tokens, not an arithmetic mean. Existing stored vectors depend on
    this exact update.
    """
    embedding = None
    for token in tokenize(text, mode):
        values = hash_vector(rolling_hash(token), dimension)
        if embedding is None:
            embedding = values
        else:
            embedding = [(acc + value) / 2 for acc, value in zip(embedding, values)]
    return embedding


class SinHashEmbedding(IEmbeddingProvider):
    """Deterministic sine-of-hash embedding provider.

    Needs no model or network access. Every vector component lies in [0, 1],
    and the empty string maps to the all-0.5 vector.
    """

    def __init__(self, dimension: int = 10, mode: str = "words"):
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        if mode not in EMBED_MODES:
            raise ValueError(f"mode must be one of: {list(EMBED_MODES)}")
        self.dimension = dimension
        self.mode = mode

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector for ``text``."""
        return embed(text, self.dimension, self.mode)

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension
