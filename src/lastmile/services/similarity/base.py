"""Base classes for lane similarity index implementations."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from ...models.domain import ClassifiedLane, LaneMetrics

FEATURE_NAMES = ("on_time_rate", "avg_transit_days", "log_volume", "delay_stddev")


def lane_features(metrics: LaneMetrics) -> np.ndarray:
    """Unscaled behavioural feature vector; indexes rescale each column to [0, 1]."""

    return np.array(
        [
            metrics.on_time_rate,
            metrics.avg_transit_days,
            math.log10(metrics.volume + 1),
            math.sqrt(max(metrics.delay_variance, 0.0)),
        ],
        dtype=float,
    )


@dataclass(frozen=True, slots=True)
class SimilarLane:
    lane: ClassifiedLane
    distance: float


class SimilarityIndex(ABC):
    """Contract for nearest-neighbour lookups over classified lanes."""

    metric: str

    @abstractmethod
    def query(
        self,
        reference: ClassifiedLane,
        k: int,
        *,
        candidate_filter: Optional[Callable[[ClassifiedLane], bool]] = None,
    ) -> list[SimilarLane]:
        raise NotImplementedError

    @staticmethod
    def rank(matches: Sequence[SimilarLane], k: int) -> list[SimilarLane]:
        """Order by distance, then volume descending, then lane key."""

        ordered = sorted(
            matches,
            key=lambda match: (round(match.distance, 12), -match.lane.volume, match.lane.key),
        )
        return ordered[:k]
