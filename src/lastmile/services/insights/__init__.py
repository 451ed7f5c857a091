"""Derived lane views."""

from .early import EarlyAnalysis, EarlyDestination, EarlyLane, compute_early_analysis
from .friction import FrictionZone, compute_friction_zones, friction_score
from .regional import (
    ClusterBreakdown,
    NetworkStats,
    RegionalPerformance,
    cluster_breakdown,
    compute_network_stats,
    compute_regional_performance,
    lanes_touching,
    region_codes,
)
from .terminals import TerminalPerformance, TerminalReport, TerminalWeights, compute_terminal_performance, score_terminal

__all__ = [
    "ClusterBreakdown",
    "EarlyAnalysis",
    "EarlyDestination",
    "EarlyLane",
    "FrictionZone",
    "NetworkStats",
    "RegionalPerformance",
    "TerminalPerformance",
    "TerminalReport",
    "TerminalWeights",
    "cluster_breakdown",
    "compute_early_analysis",
    "compute_friction_zones",
    "compute_network_stats",
    "compute_regional_performance",
    "compute_terminal_performance",
    "friction_score",
    "lanes_touching",
    "region_codes",
    "score_terminal",
]
