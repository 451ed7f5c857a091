"""Ordered, first-match-wins rules assigning lanes to behavioural clusters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import ClassifiedLane, ClusterId, LaneMetrics


@dataclass(frozen=True, slots=True)
class ClusterThresholds:
    """Tunable policy of the classifier.

    Ranges are inclusive on their lower bound and exclusive on their upper
    bound: a lane exactly at ``low_volume_floor`` is *not* low volume, a mean
    delay exactly at ``early_band_max`` is *not* early, a variance exactly at
    ``jitter_variance_min`` is *not* jitter.
    """

    low_volume_floor: int = 10
    early_band_min: float = -2.0
    early_band_max: float = -0.5
    stable_variance_max: float = 2.0
    reliable_on_time_min: float = 0.80
    jitter_variance_min: float = 3.5
    sla_on_time_min: float = 0.60

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ClusterThresholds":
        config = config or default_settings
        return cls(
            low_volume_floor=config.low_volume_floor,
            early_band_min=config.early_band_min,
            early_band_max=config.early_band_max,
            stable_variance_max=config.stable_variance_max,
            reliable_on_time_min=config.reliable_on_time_min,
            jitter_variance_min=config.jitter_variance_min,
            sla_on_time_min=config.sla_on_time_min,
        )


@dataclass(frozen=True, slots=True)
class ClusterRule:
    name: str
    cluster: ClusterId
    predicate: Callable[[LaneMetrics], bool]

    def matches(self, metrics: LaneMetrics) -> bool:
        return self.predicate(metrics)


def build_rules(thresholds: ClusterThresholds) -> tuple[ClusterRule, ...]:
    """Return the classifier rules in evaluation order.

    Order matters because the rules overlap: an under-sampled lane is never
    characterised, and a jittery lane stays High-Jitter even when its mean
    looks late.
    """

    t = thresholds
    return (
        ClusterRule(
            "low_volume",
            ClusterId.LOW_VOLUME_MIXED,
            lambda m: m.volume < t.low_volume_floor,
        ),
        ClusterRule(
            "early_and_stable",
            ClusterId.EARLY_STABLE,
            lambda m: t.early_band_min <= m.avg_delay < t.early_band_max
            and m.delay_variance < t.stable_variance_max,
        ),
        ClusterRule(
            "on_time_and_reliable",
            ClusterId.ON_TIME_RELIABLE,
            lambda m: m.on_time_rate >= t.reliable_on_time_min and m.delay_variance < t.stable_variance_max,
        ),
        ClusterRule(
            "high_jitter",
            ClusterId.HIGH_JITTER,
            lambda m: m.delay_variance > t.jitter_variance_min,
        ),
        ClusterRule(
            "systematically_late",
            ClusterId.SYSTEMATICALLY_LATE,
            lambda m: m.avg_delay > 0 and m.on_time_rate < t.sla_on_time_min,
        ),
    )


class LaneClassifier:
    """Evaluate rules in order; lanes matching none fall into Low Volume / Mixed."""

    fallback = ClusterId.LOW_VOLUME_MIXED

    def __init__(
        self,
        thresholds: Optional[ClusterThresholds] = None,
        rules: Optional[Sequence[ClusterRule]] = None,
    ) -> None:
        self.thresholds = thresholds or ClusterThresholds()
        self.rules = tuple(rules) if rules is not None else build_rules(self.thresholds)

    def matching_rule(self, metrics: LaneMetrics) -> Optional[ClusterRule]:
        for rule in self.rules:
            if rule.matches(metrics):
                return rule
        return None

    def classify(self, metrics: LaneMetrics) -> ClusterId:
        rule = self.matching_rule(metrics)
        return rule.cluster if rule else self.fallback

    def classify_all(self, lanes: Sequence[LaneMetrics]) -> tuple[ClassifiedLane, ...]:
        return tuple(ClassifiedLane(metrics=lane, cluster=self.classify(lane)) for lane in lanes)
