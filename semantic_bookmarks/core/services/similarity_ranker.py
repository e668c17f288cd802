"""Brute-force top-K cosine ranking over stored Q&A embeddings.

Each QAItem contributes two candidates, its question embedding and its
combined question+answer embedding. Candidates are scored against the
query, the best ``k`` are kept, weak matches are dropped and the rest are
grouped by owning bookmark and labelled with a quality bucket.
"""

import logging
import math
from collections.abc import Callable, Sequence

import numpy as np

from ..domain import (
    EmbeddingVariant,
    QAItem,
    QualityBucket,
    QualityThresholds,
    RankedGroup,
    SimilarityMatch,
)
from ..domain.exceptions import DimensionMismatchError, InvalidEncodingError
from .embedding_codec import decode_embedding_array

logger = logging.getLogger(__name__)

# Matches below this score never reach grouping. Kept apart from the
# configurable quality thresholds.
LOW_CONFIDENCE_FLOOR = 0.5

ThresholdsProvider = Callable[[], QualityThresholds]


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatchError(
            f"Vectors must have the same length (got {va.size} and {vb.size})",
            context={"left": int(va.size), "right": int(vb.size)},
        )
    return _cosine(va, float(np.linalg.norm(va)), vb)


def _cosine(query: np.ndarray, query_norm: float, candidate: np.ndarray) -> float:
    magnitude = query_norm * float(np.linalg.norm(candidate))
    if magnitude == 0.0:
        return 0.0
    score = float(np.dot(query, candidate)) / magnitude
    return score if math.isfinite(score) else 0.0


class SimilarityRanker:
    """Scores a corpus of QAItems against a query embedding."""

    def __init__(
        self,
        thresholds: QualityThresholds | ThresholdsProvider | None = None,
        low_confidence_floor: float = LOW_CONFIDENCE_FLOOR,
    ) -> None:
        """Initialize the ranker.

        Args:
            thresholds: Quality thresholds, or a callable returning them.
                A callable is invoked on every ranking pass so configuration
                changes take effect without rebuilding the ranker.
            low_confidence_floor: Minimum score a match needs to be kept.
        """
        if thresholds is None:
            thresholds = QualityThresholds()
        self._thresholds = thresholds
        self.low_confidence_floor = low_confidence_floor

    @property
    def thresholds(self) -> QualityThresholds:
        """Thresholds in effect right now."""
        if callable(self._thresholds):
            return self._thresholds()
        return self._thresholds

    def classify(self, score: float) -> QualityBucket:
        """Bucket a score using the current thresholds."""
        return self.thresholds.classify(score)

    def rank(
        self,
        query: Sequence[float],
        corpus: Sequence[QAItem],
        k: int,
    ) -> list[SimilarityMatch]:
        """Return up to ``k`` confident matches, best first.

        Candidates that fail to decode or whose dimensionality differs from
        the query are skipped. Ties keep corpus order.

        Args:
            query: Query embedding.
            corpus: Items to score.
            k: Maximum number of matches to select before the confidence floor.

        Returns:
            Matches sorted by descending score, all scoring at least the floor.
        """
        if k <= 0 or not corpus:
            return []

        query_vec = np.asarray(query, dtype=np.float64)
        query_norm = float(np.linalg.norm(query_vec))
        dimension = query_vec.shape[0] if query_vec.ndim == 1 else -1

        scored: list[SimilarityMatch] = []
        skipped = 0
        for item in corpus:
            for variant, encoded in (
                (EmbeddingVariant.QUESTION, item.embedding_question),
                (EmbeddingVariant.BOTH, item.embedding_both),
            ):
                try:
                    candidate = decode_embedding_array(encoded)
                except InvalidEncodingError:
                    skipped += 1
                    continue
                if candidate.shape[0] != dimension:
                    skipped += 1
                    continue
                scored.append(
                    SimilarityMatch(
                        item=item,
                        embedding_variant=variant,
                        score=_cosine(query_vec, query_norm, candidate),
                    )
                )

        if skipped:
            logger.debug(f"Skipped {skipped} candidates with unusable embeddings")

        # sorted() is stable, so equal scores keep corpus order
        top = sorted(scored, key=lambda m: m.score, reverse=True)[:k]
        self._log_distribution(scored)

        return [m for m in top if m.score >= self.low_confidence_floor]

    def group(self, matches: Sequence[SimilarityMatch]) -> list[RankedGroup]:
        """Aggregate matches by owner, keeping each owner's best match.

        Returns:
            One group per owner, sorted by descending best score.
        """
        thresholds = self.thresholds
        by_owner: dict[str, list[SimilarityMatch]] = {}
        for match in matches:
            by_owner.setdefault(match.item.owner_id, []).append(match)

        groups = []
        for owner_id, owner_matches in by_owner.items():
            ordered = sorted(owner_matches, key=lambda m: m.score, reverse=True)
            best = ordered[0]
            groups.append(
                RankedGroup(
                    owner_id=owner_id,
                    best_score=best.score,
                    representative_item=best.item,
                    quality=thresholds.classify(best.score),
                    matches=tuple(ordered),
                )
            )

        groups.sort(key=lambda g: g.best_score, reverse=True)
        return groups

    def rank_groups(
        self,
        query: Sequence[float],
        corpus: Sequence[QAItem],
        k: int,
    ) -> list[RankedGroup]:
        """``rank`` followed by ``group``."""
        return self.group(self.rank(query, corpus, k))

    def _log_distribution(self, scored: Sequence[SimilarityMatch]) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        t = self.thresholds
        distribution = {"excellent": 0, "good": 0, "fair": 0, "poor": 0, "very_poor": 0}
        for match in scored:
            if match.score >= t.excellent:
                distribution["excellent"] += 1
            elif match.score >= t.good:
                distribution["good"] += 1
            elif match.score >= t.fair:
                distribution["fair"] += 1
            elif match.score >= t.poor:
                distribution["poor"] += 1
            else:
                distribution["very_poor"] += 1
        logger.debug(f"Scored {len(scored)} candidates: {distribution}")
