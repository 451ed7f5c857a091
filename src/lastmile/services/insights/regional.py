"""Single-region roll-ups and network-wide totals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...models.domain import ClassifiedLane, ClusterId
from .common import weighted_mean


@dataclass(frozen=True, slots=True)
class ClusterBreakdown:
    cluster: ClusterId
    lane_count: int
    volume: int


@dataclass(frozen=True, slots=True)
class RegionalPerformance:
    region: str
    total_lanes: int
    outbound_lanes: int
    inbound_lanes: int
    total_volume: int
    early_rate: float
    on_time_rate: float
    late_rate: float
    avg_delay: float
    cluster_breakdown: tuple[ClusterBreakdown, ...]
    highest_friction_lanes: tuple[ClassifiedLane, ...]


@dataclass(frozen=True, slots=True)
class NetworkStats:
    total_shipments: int
    total_lanes: int
    total_regions: int
    early_rate: float
    on_time_rate: float
    late_rate: float
    avg_delay: float


def region_codes(lanes: Sequence[ClassifiedLane]) -> frozenset[str]:
    """Lower-cased codes of every region that appears as an origin or destination."""

    return frozenset(lane.origin.lower() for lane in lanes) | frozenset(lane.destination.lower() for lane in lanes)


def lanes_touching(lanes: Sequence[ClassifiedLane], region: str) -> list[ClassifiedLane]:
    normalized = region.strip().lower()
    return [
        lane
        for lane in lanes
        if lane.origin.lower() == normalized or lane.destination.lower() == normalized
    ]


def cluster_breakdown(lanes: Sequence[ClassifiedLane]) -> tuple[ClusterBreakdown, ...]:
    return tuple(
        ClusterBreakdown(
            cluster=cluster,
            lane_count=sum(1 for lane in lanes if lane.cluster is cluster),
            volume=sum(lane.volume for lane in lanes if lane.cluster is cluster),
        )
        for cluster in ClusterId
    )


def compute_regional_performance(
    lanes: Sequence[ClassifiedLane],
    region: str,
    *,
    low_volume_floor: int,
    problem_lane_limit: int = 5,
) -> RegionalPerformance:
    """Roll up every lane with ``region`` as origin or destination.

    Rates and delay are volume weighted. Problem lanes honour the classifier's
    low-volume floor.
    """

    normalized = region.strip().lower()
    regional = lanes_touching(lanes, region)
    problem = sorted(
        (lane for lane in regional if lane.volume >= low_volume_floor),
        key=lambda lane: (-lane.metrics.late_rate, -lane.volume, lane.key),
    )
    return RegionalPerformance(
        region=region.strip(),
        total_lanes=len(regional),
        outbound_lanes=sum(1 for lane in regional if lane.origin.lower() == normalized),
        inbound_lanes=sum(1 for lane in regional if lane.destination.lower() == normalized),
        total_volume=sum(lane.volume for lane in regional),
        early_rate=weighted_mean(regional, lambda lane: lane.metrics.early_rate),
        on_time_rate=weighted_mean(regional, lambda lane: lane.metrics.on_time_rate),
        late_rate=weighted_mean(regional, lambda lane: lane.metrics.late_rate),
        avg_delay=weighted_mean(regional, lambda lane: lane.metrics.avg_delay),
        cluster_breakdown=cluster_breakdown(regional),
        highest_friction_lanes=tuple(problem[:problem_lane_limit]),
    )


def compute_network_stats(lanes: Sequence[ClassifiedLane]) -> NetworkStats:
    regions = {lane.origin for lane in lanes} | {lane.destination for lane in lanes}
    return NetworkStats(
        total_shipments=sum(lane.volume for lane in lanes),
        total_lanes=len(lanes),
        total_regions=len(regions),
        early_rate=weighted_mean(lanes, lambda lane: lane.metrics.early_rate),
        on_time_rate=weighted_mean(lanes, lambda lane: lane.metrics.on_time_rate),
        late_rate=weighted_mean(lanes, lambda lane: lane.metrics.late_rate),
        avg_delay=weighted_mean(lanes, lambda lane: lane.metrics.avg_delay),
    )
