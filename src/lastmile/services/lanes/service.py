"""High-level orchestration of the lane analytics engine."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from ...config import Settings, settings as default_settings
from ...data.shipments_repository import ShipmentSource
from ...errors import InvalidArgumentError, NotFoundError
from ...models.domain import ClassifiedLane, ClusterId, Shipment
from ..cache import LaneSnapshot, LaneSnapshotCache
from ..clustering import ClusterThresholds, LaneClassifier, Playbook, lookup
from ..insights import (
    EarlyAnalysis,
    FrictionZone,
    NetworkStats,
    RegionalPerformance,
    TerminalReport,
    TerminalWeights,
    compute_early_analysis,
    compute_friction_zones,
    compute_network_stats,
    compute_regional_performance,
    compute_terminal_performance,
    region_codes,
)
from ..similarity import SUPPORTED_METRICS, SimilarLane, get_index
from .aggregator import aggregate_lanes
from .carriers import CarrierNetwork, carrier_ids, compute_carrier_network

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClusterSummary:
    cluster: ClusterId
    name: str
    description: str
    lane_count: int
    total_volume: int
    avg_delay: float
    avg_variance: float
    avg_late_rate: float


@dataclass(frozen=True, slots=True)
class SimilarLanesResult:
    reference: ClassifiedLane
    metric: str
    matches: tuple[SimilarLane, ...]
    playbook: Playbook


@dataclass(frozen=True, slots=True)
class LanePage:
    items: tuple[ClassifiedLane, ...]
    total: int
    offset: int


def _by_volume(lanes: Sequence[ClassifiedLane]) -> list[ClassifiedLane]:
    return sorted(lanes, key=lambda lane: (-lane.volume, lane.key))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class LaneAnalyticsService:
    """Engine facade used by the REST routes and the JSON-RPC tool dispatcher.

    Owns a ``LaneSnapshotCache``; the surrounding application creates one
    instance at startup and calls ``close`` on shutdown.
    """

    def __init__(self, source: ShipmentSource, config: Optional[Settings] = None) -> None:
        self.settings = config or default_settings
        self.thresholds = ClusterThresholds.from_settings(self.settings)
        self.classifier = LaneClassifier(self.thresholds)
        self.terminal_weights = TerminalWeights(
            on_time=self.settings.terminal_weight_on_time,
            delay=self.settings.terminal_weight_delay,
            variance=self.settings.terminal_weight_variance,
            delay_scale_days=self.settings.terminal_delay_scale_days,
        )
        self._region_pattern = re.compile(self.settings.region_code_pattern)
        self.cache = LaneSnapshotCache(
            source, self._build_lanes, retry_interval=self.settings.cache_retry_seconds
        )

    # -- snapshot management -------------------------------------------------

    def _build_lanes(self, shipments: Sequence[Shipment]) -> tuple[ClassifiedLane, ...]:
        metrics = aggregate_lanes(shipments, workers=self.settings.aggregation_workers)
        return self.classifier.classify_all(metrics)

    def snapshot(self) -> LaneSnapshot:
        """Current lane snapshot, or the previous one while storage is failing."""
        return self.cache.get(allow_stale=True)

    def refresh(self) -> LaneSnapshot:
        self.cache.invalidate()
        return self.cache.get()

    def close(self) -> None:
        self.cache.invalidate()

    # -- validation ----------------------------------------------------------

    @staticmethod
    def _cluster(cluster_id: int) -> ClusterId:
        try:
            return ClusterId(int(cluster_id))
        except (TypeError, ValueError):
            raise InvalidArgumentError(
                f"cluster_id must be between 1 and 5, got {cluster_id!r}", cluster_id=cluster_id
            ) from None

    @staticmethod
    def _limit(name: str, value: int) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidArgumentError(f"{name} must be a non-negative integer, got {value!r}", **{name: value})
        return value

    def _region(self, name: str, value: str) -> str:
        code = (value or "").strip()
        if not self._region_pattern.match(code):
            raise InvalidArgumentError(f"Malformed {name} region code {value!r}", **{name: value})
        return code

    # -- clusters and lanes --------------------------------------------------

    def get_lane_clusters(self) -> tuple[ClusterSummary, ...]:
        return self.snapshot().view(("clusters",), self._summarize_clusters)

    @staticmethod
    def _summarize_clusters(lanes: tuple[ClassifiedLane, ...]) -> tuple[ClusterSummary, ...]:
        summaries = []
        for cluster in ClusterId:
            members = [lane for lane in lanes if lane.cluster is cluster]
            playbook = lookup(cluster)
            summaries.append(
                ClusterSummary(
                    cluster=cluster,
                    name=playbook.name,
                    description=playbook.description,
                    lane_count=len(members),
                    total_volume=sum(lane.volume for lane in members),
                    avg_delay=_mean([lane.metrics.avg_delay for lane in members]),
                    avg_variance=_mean([lane.metrics.delay_variance for lane in members]),
                    avg_late_rate=_mean([lane.metrics.late_rate for lane in members]),
                )
            )
        return tuple(summaries)

    def get_lanes_in_cluster(self, cluster_id: int, limit: int = 20) -> tuple[ClassifiedLane, ...]:
        cluster = self._cluster(cluster_id)
        limit = self._limit("limit", limit)
        ranked = self.snapshot().view(
            ("cluster_lanes", cluster),
            lambda lanes: tuple(_by_volume([lane for lane in lanes if lane.cluster is cluster])),
        )
        return ranked[:limit]

    def list_lanes(self, limit: int = 100, offset: int = 0) -> LanePage:
        limit = self._limit("limit", limit)
        offset = self._limit("offset", offset)
        ranked = self.snapshot().view(("lanes_by_volume",), lambda lanes: tuple(_by_volume(lanes)))
        return LanePage(items=ranked[offset : offset + limit], total=len(ranked), offset=offset)

    def get_lane_profile(self, origin: str, dest: str) -> ClassifiedLane:
        origin = self._region("origin", origin)
        dest = self._region("dest", dest)
        return self._lane_in(self.snapshot(), origin, dest)

    @staticmethod
    def _lane_in(snapshot: LaneSnapshot, origin: str, dest: str) -> ClassifiedLane:
        lane = snapshot.lane(origin, dest)
        if lane is None:
            raise NotFoundError(f"Lane {origin} -> {dest} not found in the current dataset", origin=origin, dest=dest)
        return lane

    def get_cluster_playbook(self, cluster_id: int) -> Playbook:
        return lookup(self._cluster(cluster_id))

    # -- similarity ----------------------------------------------------------

    def find_similar_lanes(
        self,
        origin: str,
        dest: str,
        k: Optional[int] = None,
        *,
        metric: Optional[str] = None,
        same_cluster: bool = False,
    ) -> SimilarLanesResult:
        k = self.settings.similarity_default_k if k is None else self._limit("k", k)
        if k > self.settings.similarity_max_k:
            raise InvalidArgumentError(
                f"k must not exceed {self.settings.similarity_max_k}, got {k}", k=k
            )
        metric = metric or self.settings.similarity_metric
        if metric not in SUPPORTED_METRICS:
            raise InvalidArgumentError(f"Unsupported similarity metric {metric!r}", metric=metric)
        origin = self._region("origin", origin)
        dest = self._region("dest", dest)

        snapshot = self.snapshot()
        reference = self._lane_in(snapshot, origin, dest)
        index = snapshot.view(("similarity_index", metric), lambda lanes: get_index(lanes, metric))
        candidate_filter = (lambda lane: lane.cluster is reference.cluster) if same_cluster else None
        matches = index.query(reference, k, candidate_filter=candidate_filter)
        return SimilarLanesResult(
            reference=reference,
            metric=metric,
            matches=tuple(matches),
            playbook=lookup(reference.cluster),
        )

    # -- derived views -------------------------------------------------------
    #
    # Views are memoized unlimited and sliced per call so the memo holds one
    # entry per view rather than one per requested limit.

    def get_friction_zones(self, limit: int = 10) -> tuple[FrictionZone, ...]:
        limit = self._limit("limit", limit)
        zones = self.snapshot().view(
            ("friction",),
            lambda lanes: compute_friction_zones(
                lanes,
                low_volume_floor=self.thresholds.low_volume_floor,
                min_volume=self.settings.friction_min_volume,
            ),
        )
        return zones[:limit]

    def get_terminal_performance(self, limit: int = 5) -> TerminalReport:
        limit = self._limit("limit", limit)
        report = self.snapshot().view(
            ("terminals",),
            lambda lanes: compute_terminal_performance(
                lanes,
                low_volume_floor=self.thresholds.low_volume_floor,
                min_volume=self.settings.terminal_min_volume,
                weights=self.terminal_weights,
            ),
        )
        return replace(report, ranked=report.ranked[:limit], worst=report.worst[:limit])

    def get_early_delivery_analysis(self, limit: int = 10) -> EarlyAnalysis:
        limit = self._limit("limit", limit)
        analysis = self.snapshot().view(
            ("early",),
            lambda lanes: compute_early_analysis(
                lanes,
                low_volume_floor=self.thresholds.low_volume_floor,
                materiality_days=self.settings.early_materiality_days,
            ),
        )
        return replace(analysis, lanes=analysis.lanes[:limit], top_destinations=analysis.top_destinations[:limit])

    def get_regional_performance(self, region: str) -> RegionalPerformance:
        region = self._region("region", region)
        snapshot = self.snapshot()
        if not len(snapshot):
            return compute_regional_performance((), region, low_volume_floor=self.thresholds.low_volume_floor)
        if region.lower() not in snapshot.view(("regions",), region_codes):
            raise NotFoundError(f"No lanes touch region {region}", region=region)
        return snapshot.view(
            ("region", region.lower()),
            lambda lanes: compute_regional_performance(
                lanes, region, low_volume_floor=self.thresholds.low_volume_floor
            ),
        )

    def get_network_stats(self) -> NetworkStats:
        return self.snapshot().view(("stats",), compute_network_stats)

    # -- carriers ------------------------------------------------------------

    def get_carrier_network(self, carrier_id: str, limit: int = 20) -> CarrierNetwork:
        code = (carrier_id or "").strip()
        if not code:
            raise InvalidArgumentError("carrier_id must not be empty", carrier_id=carrier_id)
        limit = self._limit("limit", limit)

        snapshot = self.snapshot()
        known = snapshot.view(("carriers",), lambda _: carrier_ids(snapshot.shipments))
        if code.lower() not in known:
            raise NotFoundError(f"Carrier {code} has no shipments in the current dataset", carrier_id=code)
        network = snapshot.view(
            ("carrier", code.lower()),
            lambda _: compute_carrier_network(snapshot.shipments, code, self.classifier.classify_all),
        )
        return replace(network, lanes=network.lanes[:limit])
