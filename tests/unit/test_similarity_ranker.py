"""Unit tests for cosine similarity ranking and grouping."""

import logging

import pytest

from semantic_bookmarks.core.domain import (
    EmbeddingVariant,
    QAItem,
    QualityBucket,
    QualityThresholds,
)
from semantic_bookmarks.core.domain.exceptions import DimensionMismatchError
from semantic_bookmarks.core.services.similarity_ranker import (
    SimilarityRanker,
    cosine_similarity,
)

pytestmark = pytest.mark.unit


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.3, 0.4], [0.3, 0.4]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_zero_norm_returns_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestRank:
    def test_identical_embedding_is_top_and_excellent(self, item_factory):
        target = item_factory("b1", [0.6, 0.8, 0.0])
        other = item_factory("b2", [0.0, 0.0, 1.0])
        ranker = SimilarityRanker()

        matches = ranker.rank([0.6, 0.8, 0.0], [other, target], k=10)

        assert matches[0].item is target
        assert matches[0].score == pytest.approx(1.0, abs=1e-4)
        assert ranker.classify(matches[0].score) is QualityBucket.EXCELLENT

    def test_empty_corpus(self):
        assert SimilarityRanker().rank([1.0, 0.0], [], k=5) == []

    def test_k_zero(self, item_factory):
        assert SimilarityRanker().rank([1.0, 0.0], [item_factory("b", [1.0, 0.0])], k=0) == []

    def test_zero_norm_query_matches_nothing(self, item_factory):
        corpus = [item_factory("b", [1.0, 0.0])]
        assert SimilarityRanker().rank([0.0, 0.0], corpus, k=5) == []

    def test_each_item_contributes_two_variants(self, item_factory):
        item = item_factory("b", [1.0, 0.0], both_vec=[0.9, 0.1])
        matches = SimilarityRanker().rank([1.0, 0.0], [item], k=5)

        assert [m.embedding_variant for m in matches] == [
            EmbeddingVariant.QUESTION,
            EmbeddingVariant.BOTH,
        ]

    def test_results_sorted_descending_and_capped(self, item_factory):
        corpus = [item_factory(f"b{i}", [1.0, i * 0.1]) for i in range(6)]
        matches = SimilarityRanker().rank([1.0, 0.0], corpus, k=4)

        assert len(matches) == 4
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)

    def test_low_confidence_matches_dropped(self, item_factory):
        corpus = [item_factory("weak", [0.3, 1.0]), item_factory("strong", [1.0, 0.1])]
        matches = SimilarityRanker().rank([1.0, 0.0], corpus, k=10)

        assert {m.item.owner_id for m in matches} == {"strong"}
        assert all(m.score >= 0.5 for m in matches)

    def test_dimension_mismatch_is_skipped(self, item_factory):
        good = item_factory("good", [1.0, 0.0])
        wrong = item_factory("wrong", [1.0, 0.0, 0.0])
        matches = SimilarityRanker().rank([1.0, 0.0], [wrong, good], k=10)

        assert {m.item.owner_id for m in matches} == {"good"}

    def test_undecodable_embedding_is_skipped(self, item_factory):
        good = item_factory("good", [1.0, 0.0])
        broken = QAItem(
            owner_id="broken",
            question="?",
            answer=".",
            embedding_question="not base64!!",
            embedding_both="also bad",
        )
        matches = SimilarityRanker().rank([1.0, 0.0], [broken, good], k=10)

        assert {m.item.owner_id for m in matches} == {"good"}

    def test_ties_keep_corpus_order(self, item_factory):
        first = item_factory("first", [1.0, 0.0])
        second = item_factory("second", [1.0, 0.0])
        matches = SimilarityRanker().rank([1.0, 0.0], [first, second], k=4)

        assert [m.item.owner_id for m in matches] == ["first", "first", "second", "second"]

    def test_distribution_logged_at_debug(self, item_factory, caplog):
        corpus = [item_factory("b", [1.0, 0.0])]
        with caplog.at_level(logging.DEBUG, logger="semantic_bookmarks"):
            SimilarityRanker().rank([1.0, 0.0], corpus, k=5)

        assert "excellent" in caplog.text


class TestGroup:
    def test_groups_by_owner_with_best_match(self, item_factory):
        a1 = item_factory("a", [1.0, 0.2], question="a1")
        a2 = item_factory("a", [1.0, 0.0], question="a2")
        b1 = item_factory("b", [1.0, 0.6], question="b1")
        ranker = SimilarityRanker()

        groups = ranker.rank_groups([1.0, 0.0], [a1, b1, a2], k=10)

        assert [g.owner_id for g in groups] == ["a", "b"]
        assert groups[0].representative_item.question == "a2"
        assert groups[0].best_score == pytest.approx(1.0, abs=1e-4)
        assert groups[0].quality is QualityBucket.EXCELLENT
        assert len(groups[0].matches) == 4
        assert groups[1].best_score < groups[0].best_score

    def test_empty_matches(self):
        assert SimilarityRanker().group([]) == []

    def test_thresholds_provider_read_each_call(self, item_factory):
        """Quality labels follow the current thresholds without rebuilding the ranker."""
        current = {"t": QualityThresholds()}
        ranker = SimilarityRanker(thresholds=lambda: current["t"])
        corpus = [item_factory("b", [1.0, 0.5])]  # cosine ~0.894

        assert ranker.rank_groups([1.0, 0.0], corpus, k=5)[0].quality is QualityBucket.GOOD

        current["t"] = QualityThresholds(excellent=0.85, good=0.6, fair=0.4, poor=0.2)
        assert ranker.rank_groups([1.0, 0.0], corpus, k=5)[0].quality is QualityBucket.EXCELLENT


class TestQualityThresholds:
    @pytest.mark.parametrize(
        ("score", "bucket"),
        [
            (0.95, QualityBucket.EXCELLENT),
            (0.9, QualityBucket.EXCELLENT),
            (0.75, QualityBucket.GOOD),
            (0.5, QualityBucket.FAIR),
            (0.35, QualityBucket.POOR),
            (-0.2, QualityBucket.POOR),
        ],
    )
    def test_classify(self, score, bucket):
        assert QualityThresholds().classify(score) is bucket
