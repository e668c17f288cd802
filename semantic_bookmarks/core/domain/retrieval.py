"""Ranking result models."""

from dataclasses import dataclass, field
from enum import Enum

from .embedding import QAItem


class EmbeddingVariant(str, Enum):
    """Which of a QAItem's two embeddings produced a match."""

    QUESTION = "question"
    BOTH = "both"


class QualityBucket(str, Enum):
    """Confidence tier derived from a similarity score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class QualityThresholds:
    """Lower bounds for each quality bucket, in descending order.

    ``poor`` is only used for score-distribution diagnostics; anything
    below ``fair`` is classified as POOR.
    """

    excellent: float = 0.9
    good: float = 0.7
    fair: float = 0.5
    poor: float = 0.3

    def classify(self, score: float) -> QualityBucket:
        """Map a score onto its bucket."""
        if score >= self.excellent:
            return QualityBucket.EXCELLENT
        if score >= self.good:
            return QualityBucket.GOOD
        if score >= self.fair:
            return QualityBucket.FAIR
        return QualityBucket.POOR


@dataclass(frozen=True)
class SimilarityMatch:
    """One scored candidate from a ranking pass. Never persisted."""

    item: QAItem
    embedding_variant: EmbeddingVariant
    score: float


@dataclass(frozen=True)
class RankedGroup:
    """Matches aggregated by owning record.

    Attributes:
        owner_id: Id of the owning record.
        best_score: Highest score among the owner's matches.
        representative_item: The QAItem behind ``best_score``.
        quality: Bucket of ``best_score``.
        matches: All of the owner's matches, best first.
    """

    owner_id: str
    best_score: float
    representative_item: QAItem
    quality: QualityBucket
    matches: tuple[SimilarityMatch, ...] = field(default_factory=tuple)
