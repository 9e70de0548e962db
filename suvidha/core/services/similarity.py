"""Cosine similarity and brute-force top-K ranking over embedded candidates."""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

import numpy as np

from ..domain.exceptions import DimensionMismatchError
from ..domain.utils import deserialize_embedding

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1].

    A zero vector on either side yields 0.0 rather than NaN.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            "Embedding dimensions must match",
            context={"left": len(a), "right": len(b)},
        )

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, score))


def _entry_embedding(candidate: Any) -> Any:
    return getattr(candidate, "embedding", None)


class SimilarityEngine:
    """Ranks candidates against a query vector.

    Candidates are anything the ``embedding_of`` accessor can read a vector
    from; the stored value may be a list of floats or the JSON text it is
    persisted as. Candidates without a usable vector are skipped: a single
    malformed stored entry must not abort a whole search.

    Ties keep the candidates' input order (the sort is stable).
    """

    def __init__(self, embedding_of: Callable[[Any], Any] = _entry_embedding) -> None:
        self.embedding_of = embedding_of

    def _usable_vector(self, candidate: Any, dimension: int) -> list[float] | None:
        raw = self.embedding_of(candidate)
        if raw is None:
            return None
        try:
            vector = deserialize_embedding(raw)
        except (ValueError, TypeError) as e:
            logger.warning("Skipping candidate with unparsable embedding: %s", e)
            return None
        if not vector:
            return None
        if len(vector) != dimension:
            logger.warning(
                "Skipping candidate with %d-dimensional embedding (query has %d)",
                len(vector),
                dimension,
            )
            return None
        if not np.all(np.isfinite(vector)):
            logger.warning("Skipping candidate with non-finite embedding values")
            return None
        return vector

    def rank(
        self,
        query: Sequence[float],
        candidates: Iterable[T],
        top_k: int = DEFAULT_TOP_K,
    ) -> list[tuple[T, float]]:
        """Return up to ``top_k`` (candidate, score) pairs, best first."""
        if top_k <= 0:
            return []

        scored: list[tuple[T, float]] = []
        for candidate in candidates:
            vector = self._usable_vector(candidate, len(query))
            if vector is None:
                continue
            scored.append((candidate, cosine_similarity(query, vector)))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:top_k]
