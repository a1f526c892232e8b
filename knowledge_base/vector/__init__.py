"""
Embedding and similarity ranking.
"""

from .types import Candidate, RankedResult, Vector
from .embeddings import IEmbeddingProvider, SinHashEmbedding, embed, rolling_hash
from .ranking import cosine_similarity, rank

__all__ = [
    'Candidate',
    'RankedResult',
    'Vector',
    'IEmbeddingProvider',
    'SinHashEmbedding',
    'embed',
    'rolling_hash',
    'cosine_similarity',
    'rank'
]
