"""Exhaustive pairwise similarity search over the lane feature matrix."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np
from sklearn.metrics import pairwise_distances
from sklearn.preprocessing import MinMaxScaler

from ...models.domain import ClassifiedLane
from .base import FEATURE_NAMES, SimilarLane, SimilarityIndex, lane_features


class BruteForceIndex(SimilarityIndex):
    """Scan every lane; adequate for the low thousands of lanes seen in practice.

    Each feature column is min-max scaled over the indexed lanes so that no
    dimension outweighs another through its units alone. Constant columns
    scale to zero.
    """

    def __init__(self, lanes: Sequence[ClassifiedLane], *, metric: str = "euclidean") -> None:
        self.metric = metric
        self.lanes = tuple(lanes)
        self.scaler: Optional[MinMaxScaler] = None
        if self.lanes:
            raw = np.vstack([lane_features(lane.metrics) for lane in self.lanes])
            self.scaler = MinMaxScaler().fit(raw)
            self.matrix = self.scaler.transform(raw)
        else:
            self.matrix = np.empty((0, len(FEATURE_NAMES)))

    def query(
        self,
        reference: ClassifiedLane,
        k: int,
        *,
        candidate_filter: Optional[Callable[[ClassifiedLane], bool]] = None,
    ) -> list[SimilarLane]:
        if k <= 0 or not self.lanes:
            return []

        vector = self.scaler.transform(lane_features(reference.metrics).reshape(1, -1))
        distances = pairwise_distances(vector, self.matrix, metric=self.metric)[0]

        matches: list[SimilarLane] = []
        for lane, distance in zip(self.lanes, distances):
            if lane.key == reference.key:
                continue
            if candidate_filter is not None and not candidate_filter(lane):
                continue
            matches.append(SimilarLane(lane=lane, distance=float(distance)))
        return self.rank(matches, k)
