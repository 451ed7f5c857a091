"""Early-delivery analysis: lanes carrying more transit buffer than they use."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import ClassifiedLane
from .common import established_lanes, group_lanes

RECOMMENDATIONS = (
    "Consider hold-until policies for Early & Stable lanes to reduce storage costs",
    "Destinations with high early rates may benefit from tighter SLA windows",
    "Review carrier contracts - early deliveries may indicate over-provisioned transit times",
)


@dataclass(frozen=True, slots=True)
class EarlyLane:
    lane: ClassifiedLane
    buffer_days: float
    early_shipments: int


@dataclass(frozen=True, slots=True)
class EarlyDestination:
    destination: str
    early_rate: float
    avg_days_early: float
    early_shipments: int
    volume: int


@dataclass(frozen=True, slots=True)
class EarlyAnalysis:
    total_shipments: int
    early_shipments: int
    early_rate: float
    lanes: tuple[EarlyLane, ...]
    top_destinations: tuple[EarlyDestination, ...]
    recommendations: tuple[str, ...]


def _early_count(lane: ClassifiedLane) -> int:
    return round(lane.metrics.early_rate * lane.volume)


def compute_early_analysis(
    lanes: Sequence[ClassifiedLane],
    *,
    low_volume_floor: int,
    materiality_days: float,
    limit: Optional[int] = None,
) -> EarlyAnalysis:
    total = sum(lane.volume for lane in lanes)
    early_total = sum(_early_count(lane) for lane in lanes)

    established = established_lanes(lanes, low_volume_floor)
    candidates = [
        EarlyLane(lane=lane, buffer_days=-lane.metrics.avg_delay, early_shipments=_early_count(lane))
        for lane in established
        if lane.metrics.avg_delay < -materiality_days
    ]
    candidates.sort(key=lambda item: (-item.buffer_days, -item.lane.volume, item.lane.key))

    destinations: list[EarlyDestination] = []
    for destination, members in group_lanes(established, lambda lane: lane.destination).items():
        early = sum(_early_count(lane) for lane in members)
        if not early:
            continue
        volume = sum(lane.volume for lane in members)
        ahead = [lane for lane in members if lane.metrics.avg_delay < 0]
        ahead_volume = sum(lane.volume for lane in ahead)
        days_early = (
            sum(-lane.metrics.avg_delay * lane.volume for lane in ahead) / ahead_volume if ahead_volume else 0.0
        )
        destinations.append(
            EarlyDestination(
                destination=destination,
                early_rate=early / volume,
                avg_days_early=days_early,
                early_shipments=early,
                volume=volume,
            )
        )
    destinations.sort(key=lambda item: (-item.early_shipments, item.destination))

    return EarlyAnalysis(
        total_shipments=total,
        early_shipments=early_total,
        early_rate=early_total / total if total else 0.0,
        lanes=tuple(candidates[:limit]),
        top_destinations=tuple(destinations[:limit]),
        recommendations=RECOMMENDATIONS if early_total else tuple(),
    )
