"""Lane, cluster and similarity API schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from ..models.domain import ClassifiedLane
from ..services.clustering import Playbook
from ..services.lanes import CarrierNetwork, ClusterSummary, LanePage, SimilarLanesResult


def pct(rate: float) -> float:
    return round(rate * 100, 1)


class LaneModel(BaseModel):
    origin: str
    destination: str
    route: str
    volume: int
    avg_delay: float = Field(..., description="Mean of actual minus goal transit days; negative is early.")
    delay_variance: float
    avg_transit_days: float
    early_rate: float = Field(..., description="Percentage of shipments delivered early.")
    on_time_rate: float
    late_rate: float
    cluster_id: int
    cluster_name: str

    @classmethod
    def from_lane(cls, lane: ClassifiedLane) -> "LaneModel":
        metrics = lane.metrics
        return cls(
            origin=metrics.origin,
            destination=metrics.destination,
            route=metrics.route,
            volume=metrics.volume,
            avg_delay=round(metrics.avg_delay, 2),
            delay_variance=round(metrics.delay_variance, 2),
            avg_transit_days=round(metrics.avg_transit_days, 2),
            early_rate=pct(metrics.early_rate),
            on_time_rate=pct(metrics.on_time_rate),
            late_rate=pct(metrics.late_rate),
            cluster_id=int(lane.cluster),
            cluster_name=lane.cluster.label,
        )


class LanePageResponse(BaseModel):
    items: List[LaneModel]
    total: int
    offset: int
    has_next_page: bool

    @classmethod
    def from_page(cls, page: LanePage) -> "LanePageResponse":
        return cls(
            items=[LaneModel.from_lane(lane) for lane in page.items],
            total=page.total,
            offset=page.offset,
            has_next_page=(page.offset + len(page.items)) < page.total,
        )


class ClusterModel(BaseModel):
    id: int
    name: str
    description: str
    lane_count: int
    total_volume: int
    avg_delay: float
    avg_variance: float
    avg_late_rate: float

    @classmethod
    def from_summary(cls, summary: ClusterSummary) -> "ClusterModel":
        return cls(
            id=int(summary.cluster),
            name=summary.name,
            description=summary.description,
            lane_count=summary.lane_count,
            total_volume=summary.total_volume,
            avg_delay=round(summary.avg_delay, 2),
            avg_variance=round(summary.avg_variance, 2),
            avg_late_rate=pct(summary.avg_late_rate),
        )


class PlaybookModel(BaseModel):
    cluster_id: int
    cluster_name: str
    description: str
    actions: List[str]

    @classmethod
    def from_playbook(cls, playbook: Playbook) -> "PlaybookModel":
        return cls(
            cluster_id=int(playbook.cluster),
            cluster_name=playbook.name,
            description=playbook.description,
            actions=list(playbook.actions),
        )


class SimilarLaneModel(BaseModel):
    lane: LaneModel
    distance: float


class SimilarLanesResponse(BaseModel):
    reference: LaneModel
    metric: str
    similar_lanes: List[SimilarLaneModel]
    shared_playbook: str

    @classmethod
    def from_result(cls, result: SimilarLanesResult) -> "SimilarLanesResponse":
        return cls(
            reference=LaneModel.from_lane(result.reference),
            metric=result.metric,
            similar_lanes=[
                SimilarLaneModel(lane=LaneModel.from_lane(match.lane), distance=round(match.distance, 4))
                for match in result.matches
            ],
            shared_playbook=result.playbook.name,
        )


class CarrierNetworkResponse(BaseModel):
    carrier_id: str
    modes: List[str]
    total_shipments: int
    total_lanes: int
    early_rate: float
    on_time_rate: float
    late_rate: float
    origins: List[str]
    destinations: List[str]
    top_lanes: List[LaneModel] = Field(..., description="Carrier-only lane metrics, highest volume first.")

    @classmethod
    def from_network(cls, network: CarrierNetwork) -> "CarrierNetworkResponse":
        return cls(
            carrier_id=network.carrier_id,
            modes=[mode.value for mode in network.modes],
            total_shipments=network.total_shipments,
            total_lanes=network.total_lanes,
            early_rate=pct(network.early_rate),
            on_time_rate=pct(network.on_time_rate),
            late_rate=pct(network.late_rate),
            origins=list(network.origins),
            destinations=list(network.destinations),
            top_lanes=[LaneModel.from_lane(lane) for lane in network.lanes],
        )
