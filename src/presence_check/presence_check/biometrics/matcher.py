from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.constants import DEFAULT_MATCH_THRESHOLD
from ..core.exceptions import DimensionMismatch


@dataclass(frozen=True)
class MatchResult:
    is_match: bool
    distance: float
    confidence: float


def confidence_from_distance(distance: float) -> float:
    """Map a distance to a [0, 1] score: 1 for identical, 0 at distance >= 1."""
    if math.isnan(distance):
        return 0.0
    return max(0.0, 1.0 - min(distance, 1.0))


class DescriptorMatcher:
    """Compare face descriptors by Euclidean distance.

    The threshold is per-deployment configuration (``FACE_MATCH_THRESHOLD``).
    """

    def __init__(self, *, threshold: float = DEFAULT_MATCH_THRESHOLD):
        self._threshold = float(threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    @staticmethod
    def distance(d1: Sequence[float], d2: Sequence[float]) -> float:
        """Raw Euclidean distance. Raises DimensionMismatch for empty/unequal vectors."""
        try:
            a = np.asarray(d1, dtype=float)
            b = np.asarray(d2, dtype=float)
        except (TypeError, ValueError) as e:
            raise DimensionMismatch(f"Descriptors are not numeric vectors: {e}") from e
        if a.ndim != 1 or b.ndim != 1 or a.size == 0 or b.size == 0 or a.size != b.size:
            raise DimensionMismatch(f"Cannot compare descriptors of shape {a.shape} and {b.shape}")
        return float(np.linalg.norm(a - b))

    def safe_distance(self, d1: Optional[Sequence[float]], d2: Optional[Sequence[float]]) -> float:
        """Distance used for decisions: an uncomparable pair is a definite non-match."""
        if d1 is None or d2 is None:
            return math.inf
        try:
            return self.distance(d1, d2)
        except DimensionMismatch:
            return math.inf

    def evaluate(self, live: Optional[Sequence[float]], stored: Optional[Sequence[float]]) -> MatchResult:
        distance = self.safe_distance(live, stored)
        return MatchResult(
            is_match=distance <= self._threshold,
            distance=distance,
            confidence=confidence_from_distance(distance),
        )
