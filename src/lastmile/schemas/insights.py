"""Pydantic response models for the derived analysis endpoints."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel

from ..services.insights import (
    EarlyAnalysis,
    FrictionZone,
    NetworkStats,
    RegionalPerformance,
    TerminalPerformance,
    TerminalReport,
)
from .lanes import LaneModel, pct


class FrictionZoneModel(BaseModel):
    destination: str
    friction_score: float
    late_rate: float
    delay_variance: float
    volume: int
    lane_count: int

    @classmethod
    def from_zone(cls, zone: FrictionZone) -> "FrictionZoneModel":
        return cls(
            destination=zone.destination,
            friction_score=round(zone.friction_score, 1),
            late_rate=pct(zone.late_rate),
            delay_variance=round(zone.delay_variance, 2),
            volume=zone.volume,
            lane_count=zone.lane_count,
        )


class TerminalModel(BaseModel):
    origin: str
    performance_score: float
    on_time_rate: float
    early_rate: float
    late_rate: float
    avg_delay: float
    delay_variance: float
    volume: int
    lane_count: int

    @classmethod
    def from_terminal(cls, terminal: TerminalPerformance) -> "TerminalModel":
        return cls(
            origin=terminal.origin,
            performance_score=round(terminal.performance_score, 1),
            on_time_rate=pct(terminal.on_time_rate),
            early_rate=pct(terminal.early_rate),
            late_rate=pct(terminal.late_rate),
            avg_delay=round(terminal.avg_delay, 2),
            delay_variance=round(terminal.delay_variance, 2),
            volume=terminal.volume,
            lane_count=terminal.lane_count,
        )


class TerminalReportResponse(BaseModel):
    ranked: List[TerminalModel]
    worst: List[TerminalModel]
    average_score: float
    total_volume: int
    total_terminals: int

    @classmethod
    def from_report(cls, report: TerminalReport) -> "TerminalReportResponse":
        return cls(
            ranked=[TerminalModel.from_terminal(t) for t in report.ranked],
            worst=[TerminalModel.from_terminal(t) for t in report.worst],
            average_score=round(report.average_score, 1),
            total_volume=report.total_volume,
            total_terminals=report.total_terminals,
        )


class EarlyLaneModel(BaseModel):
    lane: LaneModel
    buffer_days: float
    early_shipments: int


class EarlyDestinationModel(BaseModel):
    destination: str
    early_rate: float
    avg_days_early: float
    early_shipments: int
    volume: int


class EarlyAnalysisResponse(BaseModel):
    total_shipments: int
    early_shipments: int
    early_rate: float
    lanes: List[EarlyLaneModel]
    top_destinations: List[EarlyDestinationModel]
    recommendations: List[str]

    @classmethod
    def from_analysis(cls, analysis: EarlyAnalysis) -> "EarlyAnalysisResponse":
        return cls(
            total_shipments=analysis.total_shipments,
            early_shipments=analysis.early_shipments,
            early_rate=pct(analysis.early_rate),
            lanes=[
                EarlyLaneModel(
                    lane=LaneModel.from_lane(item.lane),
                    buffer_days=round(item.buffer_days, 2),
                    early_shipments=item.early_shipments,
                )
                for item in analysis.lanes
            ],
            top_destinations=[
                EarlyDestinationModel(
                    destination=item.destination,
                    early_rate=pct(item.early_rate),
                    avg_days_early=round(item.avg_days_early, 1),
                    early_shipments=item.early_shipments,
                    volume=item.volume,
                )
                for item in analysis.top_destinations
            ],
            recommendations=list(analysis.recommendations),
        )


class ClusterBreakdownModel(BaseModel):
    cluster_id: int
    cluster: str
    lane_count: int
    volume: int


class RegionalPerformanceResponse(BaseModel):
    region: str
    total_lanes: int
    outbound_lanes: int
    inbound_lanes: int
    total_volume: int
    early_rate: float
    on_time_rate: float
    late_rate: float
    avg_delay: float
    cluster_breakdown: List[ClusterBreakdownModel]
    highest_friction_lanes: List[LaneModel]

    @classmethod
    def from_report(cls, report: RegionalPerformance) -> "RegionalPerformanceResponse":
        return cls(
            region=report.region,
            total_lanes=report.total_lanes,
            outbound_lanes=report.outbound_lanes,
            inbound_lanes=report.inbound_lanes,
            total_volume=report.total_volume,
            early_rate=pct(report.early_rate),
            on_time_rate=pct(report.on_time_rate),
            late_rate=pct(report.late_rate),
            avg_delay=round(report.avg_delay, 2),
            cluster_breakdown=[
                ClusterBreakdownModel(
                    cluster_id=int(entry.cluster),
                    cluster=entry.cluster.label,
                    lane_count=entry.lane_count,
                    volume=entry.volume,
                )
                for entry in report.cluster_breakdown
            ],
            highest_friction_lanes=[LaneModel.from_lane(lane) for lane in report.highest_friction_lanes],
        )


class NetworkStatsResponse(BaseModel):
    total_shipments: int
    total_lanes: int
    total_regions: int
    overall_early_rate: float
    overall_on_time_rate: float
    overall_late_rate: float
    avg_delay: float

    @classmethod
    def from_stats(cls, stats: NetworkStats) -> "NetworkStatsResponse":
        return cls(
            total_shipments=stats.total_shipments,
            total_lanes=stats.total_lanes,
            total_regions=stats.total_regions,
            overall_early_rate=pct(stats.early_rate),
            overall_on_time_rate=pct(stats.on_time_rate),
            overall_late_rate=pct(stats.late_rate),
            avg_delay=round(stats.avg_delay, 2),
        )
