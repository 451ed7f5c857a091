"""Origin terminal scorecards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ...models.domain import ClassifiedLane
from .common import established_lanes, group_lanes, weighted_mean


@dataclass(frozen=True, slots=True)
class TerminalWeights:
    on_time: float = 0.6
    delay: float = 0.25
    variance: float = 0.15
    delay_scale_days: float = 3.0

    @property
    def total(self) -> float:
        return self.on_time + self.delay + self.variance


@dataclass(frozen=True, slots=True)
class TerminalPerformance:
    origin: str
    performance_score: float
    on_time_rate: float
    early_rate: float
    late_rate: float
    avg_delay: float
    delay_variance: float
    volume: int
    lane_count: int


@dataclass(frozen=True, slots=True)
class TerminalReport:
    ranked: tuple[TerminalPerformance, ...]
    worst: tuple[TerminalPerformance, ...]
    average_score: float
    total_volume: int
    total_terminals: int


def score_terminal(on_time_rate: float, avg_delay: float, delay_variance: float, weights: TerminalWeights) -> float:
    """Blend on-time rate, lateness and stability into a 0-100 score."""

    if weights.total <= 0:
        raise ValueError("terminal weights must not all be zero")
    punctuality = min(max(1.0 - max(avg_delay, 0.0) / weights.delay_scale_days, 0.0), 1.0)
    stability = 1.0 / (1.0 + max(delay_variance, 0.0))
    blended = weights.on_time * on_time_rate + weights.delay * punctuality + weights.variance * stability
    return min(max(100.0 * blended / weights.total, 0.0), 100.0)


def compute_terminal_performance(
    lanes: Sequence[ClassifiedLane],
    *,
    low_volume_floor: int,
    min_volume: int,
    limit: Optional[int] = None,
    weights: TerminalWeights | None = None,
) -> TerminalReport:
    weights = weights or TerminalWeights()
    by_origin = group_lanes(established_lanes(lanes, low_volume_floor), lambda lane: lane.origin)
    floor = max(min_volume, low_volume_floor)

    terminals: list[TerminalPerformance] = []
    for origin, members in by_origin.items():
        volume = sum(lane.volume for lane in members)
        if volume < floor:
            continue
        on_time = weighted_mean(members, lambda lane: lane.metrics.on_time_rate)
        avg_delay = weighted_mean(members, lambda lane: lane.metrics.avg_delay)
        variance = weighted_mean(members, lambda lane: lane.metrics.delay_variance)
        terminals.append(
            TerminalPerformance(
                origin=origin,
                performance_score=score_terminal(on_time, avg_delay, variance, weights),
                on_time_rate=on_time,
                early_rate=weighted_mean(members, lambda lane: lane.metrics.early_rate),
                late_rate=weighted_mean(members, lambda lane: lane.metrics.late_rate),
                avg_delay=avg_delay,
                delay_variance=variance,
                volume=volume,
                lane_count=len(members),
            )
        )

    ranked = sorted(terminals, key=lambda t: (-t.performance_score, -t.volume, t.origin))
    worst = sorted(terminals, key=lambda t: (t.performance_score, -t.volume, t.origin))
    average = sum(t.performance_score for t in terminals) / len(terminals) if terminals else 0.0
    return TerminalReport(
        ranked=tuple(ranked[:limit]),
        worst=tuple(worst[:limit]),
        average_score=average,
        total_volume=sum(t.volume for t in terminals),
        total_terminals=len(terminals),
    )
