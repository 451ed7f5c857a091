"""Lane similarity search."""

from .base import FEATURE_NAMES, SimilarLane, SimilarityIndex, lane_features
from .brute_force import BruteForceIndex
from .dispatcher import SUPPORTED_METRICS, get_index

__all__ = [
    "BruteForceIndex",
    "FEATURE_NAMES",
    "SUPPORTED_METRICS",
    "SimilarLane",
    "SimilarityIndex",
    "get_index",
    "lane_features",
]
