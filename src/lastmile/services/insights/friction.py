"""Destination friction zones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import ClassifiedLane
from .common import established_lanes, group_lanes, weighted_mean


@dataclass(frozen=True, slots=True)
class FrictionZone:
    destination: str
    friction_score: float
    late_rate: float
    delay_variance: float
    volume: int
    lane_count: int


def friction_score(late_rate: float, delay_variance: float) -> float:
    """Late rate (scaled to 0-10) plus delay variance in days squared."""

    return late_rate * 10.0 + delay_variance


def compute_friction_zones(
    lanes: Sequence[ClassifiedLane],
    *,
    low_volume_floor: int,
    min_volume: int,
    limit: Optional[int] = None,
) -> tuple[FrictionZone, ...]:
    """Rank destinations by volume-weighted late rate and delay variance.

    Under-sampled lanes are left out so a zone is never flagged on the strength
    of lanes the classifier itself refuses to characterise.
    """

    by_destination = group_lanes(established_lanes(lanes, low_volume_floor), lambda lane: lane.destination)
    floor = max(min_volume, low_volume_floor)

    zones: list[FrictionZone] = []
    for destination, members in by_destination.items():
        volume = sum(lane.volume for lane in members)
        if volume < floor:
            continue
        late_rate = weighted_mean(members, lambda lane: lane.metrics.late_rate)
        variance = weighted_mean(members, lambda lane: lane.metrics.delay_variance)
        zones.append(
            FrictionZone(
                destination=destination,
                friction_score=friction_score(late_rate, variance),
                late_rate=late_rate,
                delay_variance=variance,
                volume=volume,
                lane_count=len(members),
            )
        )

    zones.sort(key=lambda zone: (-zone.friction_score, -zone.volume, zone.destination))
    return tuple(zones[:limit])
