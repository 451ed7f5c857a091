"""Factory for similarity indexes based on the configured metric."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import ClassifiedLane
from .base import SimilarityIndex
from .brute_force import BruteForceIndex

SUPPORTED_METRICS = ("euclidean", "manhattan", "cosine")


def get_index(lanes: Sequence[ClassifiedLane], metric: str = "euclidean") -> SimilarityIndex:
    match metric:
        case "euclidean" | "manhattan" | "cosine":
            return BruteForceIndex(lanes, metric=metric)
        case _:
            raise ValueError(f"Unknown similarity metric '{metric}'. Expected one of {', '.join(SUPPORTED_METRICS)}.")
