"""Unit tests for cosine similarity and top-K ranking."""

from dataclasses import dataclass
from typing import Any

import pytest

from suvidha.core.domain.exceptions import DimensionMismatchError
from suvidha.core.services.similarity import SimilarityEngine, cosine_similarity

pytestmark = pytest.mark.unit


@dataclass
class Candidate:
    name: str
    embedding: Any


class TestCosineSimilarity:
    def test_identical_vectors_score_one(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors_score_zero(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors_score_minus_one(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_is_symmetric_and_scale_invariant(self):
        a, b = [0.3, -1.2, 4.0], [2.0, 0.5, 1.0]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert cosine_similarity([x * 10 for x in a], b) == pytest.approx(cosine_similarity(a, b))

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


class TestSimilarityEngine:
    def test_ranks_best_first_and_truncates(self):
        candidates = [
            Candidate("far", [0.0, 1.0]),
            Candidate("exact", [1.0, 0.0]),
            Candidate("close", [0.9, 0.1]),
        ]
        ranked = SimilarityEngine().rank([1.0, 0.0], candidates, top_k=2)

        assert [c.name for c, _ in ranked] == ["exact", "close"]
        assert ranked[0][1] >= ranked[1][1]

    def test_ties_keep_input_order(self):
        candidates = [Candidate(name, [1.0, 1.0]) for name in ("a", "b", "c")]
        ranked = SimilarityEngine().rank([2.0, 2.0], candidates, top_k=3)
        assert [c.name for c, _ in ranked] == ["a", "b", "c"]

    def test_accepts_json_text_embeddings(self):
        ranked = SimilarityEngine().rank([1.0, 0.0], [Candidate("stored", "[1.0, 0.0]")])
        assert ranked[0][1] == pytest.approx(1.0)

    def test_skips_unusable_candidates(self):
        candidates = [
            Candidate("missing", None),
            Candidate("garbled", "not-json"),
            Candidate("wrong-dim", [1.0, 0.0, 0.0]),
            Candidate("empty", []),
            Candidate("good", [0.5, 0.5]),
        ]
        ranked = SimilarityEngine().rank([1.0, 1.0], candidates, top_k=5)
        assert [c.name for c, _ in ranked] == ["good"]

    @pytest.mark.parametrize("stored", ["[NaN, 0.0]", "[Infinity, 0.0]", [float("nan"), 0.0]])
    def test_skips_non_finite_embeddings(self, stored):
        candidates = [Candidate("good", "[1.0, 0.0]"), Candidate("corrupt", stored)]

        ranked = SimilarityEngine().rank([1.0, 0.0], candidates)

        assert [(c.name, score) for c, score in ranked] == [("good", pytest.approx(1.0))]

    def test_non_positive_top_k_returns_nothing(self):
        assert SimilarityEngine().rank([1.0], [Candidate("a", [1.0])], top_k=0) == []

    def test_custom_embedding_accessor(self):
        engine = SimilarityEngine(embedding_of=lambda item: item["vec"])
        ranked = engine.rank([0.0, 1.0], [{"vec": [1.0, 0.0]}, {"vec": [0.0, 1.0]}], top_k=1)
        assert ranked[0][0] == {"vec": [0.0, 1.0]}
