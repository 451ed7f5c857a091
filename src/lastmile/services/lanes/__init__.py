"""Lane aggregation and the engine facade."""

from .aggregator import aggregate_lanes, for_carrier, group_by_lane, summarize_lane
from .carriers import CarrierNetwork, carrier_ids, compute_carrier_network
from .service import ClusterSummary, LaneAnalyticsService, LanePage, SimilarLanesResult

__all__ = [
    "CarrierNetwork",
    "ClusterSummary",
    "LaneAnalyticsService",
    "LanePage",
    "SimilarLanesResult",
    "aggregate_lanes",
    "carrier_ids",
    "compute_carrier_network",
    "for_carrier",
    "group_by_lane",
    "summarize_lane",
]
