"""Tool registry exposed through the JSON-RPC dispatcher.

Each tool pairs a pydantic argument model with a handler that calls one
``LaneAnalyticsService`` operation and returns a response schema. The
argument models double as the advertised ``inputSchema``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field

from ..schemas.insights import (
    EarlyAnalysisResponse,
    FrictionZoneModel,
    RegionalPerformanceResponse,
    TerminalReportResponse,
)
from ..schemas.lanes import CarrierNetworkResponse, ClusterModel, LaneModel, PlaybookModel, SimilarLanesResponse
from ..services.lanes import LaneAnalyticsService

SERVER_NAME = "last-mile-analytics"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"


class _Arguments(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NoArguments(_Arguments):
    pass


class ClusterLanesArguments(_Arguments):
    cluster_id: int = Field(..., description="Cluster ID (1-5)")
    limit: int = Field(default=20, description="Maximum number of lanes to return")


class ClusterArguments(_Arguments):
    cluster_id: int = Field(..., description="Cluster ID (1-5)")


class LaneArguments(_Arguments):
    origin: str = Field(..., description="Origin region code (e.g. '750')")
    dest: str = Field(..., description="Destination region code (e.g. '857')")


class SimilarLanesArguments(LaneArguments):
    k: Optional[int] = Field(default=None, description="Number of similar lanes to return")
    metric: Optional[Literal["euclidean", "manhattan", "cosine"]] = None
    same_cluster: bool = False


class RegionArguments(_Arguments):
    region: str = Field(..., description="Region code, matched as origin or destination")


class LimitArguments(_Arguments):
    limit: int = Field(default=10, description="Maximum number of entries to return")


class TerminalArguments(_Arguments):
    limit: int = Field(default=5, description="Number of top and bottom terminals to return")


class CarrierArguments(_Arguments):
    carrier_id: str = Field(..., description="Carrier identifier (e.g. 'CARR1')")
    limit: int = Field(default=20, description="Maximum number of lanes to return")


@dataclass(frozen=True, slots=True)
class Tool:
    name: str
    description: str
    arguments: type[_Arguments]
    handler: Callable[[LaneAnalyticsService, Any], Any]

    def describe(self) -> dict:
        schema = self.arguments.model_json_schema()
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": schema.get("properties", {}),
                "required": schema.get("required", []),
            },
        }

    def call(self, service: LaneAnalyticsService, raw_arguments: dict) -> Any:
        """Validate ``raw_arguments`` and run the handler.

        Raises ``pydantic.ValidationError`` for malformed arguments; engine
        errors propagate unchanged.
        """
        arguments = self.arguments.model_validate(raw_arguments)
        return jsonable_encoder(self.handler(service, arguments))


TOOLS: tuple[Tool, ...] = (
    Tool(
        name="get_lane_clusters",
        description=(
            "Get all lane behavioral clusters with summary statistics. Returns 5 clusters: "
            "Early & Stable, On-Time & Reliable, High-Jitter, Systematically Late and Low Volume / Mixed."
        ),
        arguments=NoArguments,
        handler=lambda service, _: [ClusterModel.from_summary(s) for s in service.get_lane_clusters()],
    ),
    Tool(
        name="get_lanes_in_cluster",
        description="Get lanes in a cluster, highest volume first.",
        arguments=ClusterLanesArguments,
        handler=lambda service, args: [
            LaneModel.from_lane(lane) for lane in service.get_lanes_in_cluster(args.cluster_id, args.limit)
        ],
    ),
    Tool(
        name="get_lane_profile",
        description="Get metrics and cluster assignment for a single lane.",
        arguments=LaneArguments,
        handler=lambda service, args: LaneModel.from_lane(service.get_lane_profile(args.origin, args.dest)),
    ),
    Tool(
        name="get_cluster_playbook",
        description="Get the recommended last-mile strategy and actions for a cluster.",
        arguments=ClusterArguments,
        handler=lambda service, args: PlaybookModel.from_playbook(service.get_cluster_playbook(args.cluster_id)),
    ),
    Tool(
        name="find_similar_lanes",
        description="Rank lanes by behavioral distance to a reference lane.",
        arguments=SimilarLanesArguments,
        handler=lambda service, args: SimilarLanesResponse.from_result(
            service.find_similar_lanes(
                args.origin, args.dest, args.k, metric=args.metric, same_cluster=args.same_cluster
            )
        ),
    ),
    Tool(
        name="get_early_delivery_analysis",
        description="Analyze early delivery patterns and lanes whose goal transit looks over-provisioned.",
        arguments=LimitArguments,
        handler=lambda service, args: EarlyAnalysisResponse.from_analysis(
            service.get_early_delivery_analysis(args.limit)
        ),
    ),
    Tool(
        name="get_regional_performance",
        description="Get inbound and outbound performance for one region, with a cluster breakdown and problem lanes.",
        arguments=RegionArguments,
        handler=lambda service, args: RegionalPerformanceResponse.from_report(
            service.get_regional_performance(args.region)
        ),
    ),
    Tool(
        name="get_friction_zones",
        description="Rank destination regions by friction score (late rate and delay variance).",
        arguments=LimitArguments,
        handler=lambda service, args: [FrictionZoneModel.from_zone(z) for z in service.get_friction_zones(args.limit)],
    ),
    Tool(
        name="get_terminal_performance",
        description="Score origin terminals on outbound delivery performance (0-100).",
        arguments=TerminalArguments,
        handler=lambda service, args: TerminalReportResponse.from_report(service.get_terminal_performance(args.limit)),
    ),
    Tool(
        name="get_carrier_network",
        description="Get the lanes one carrier serves, with its volume, OTD mix, origins and destinations.",
        arguments=CarrierArguments,
        handler=lambda service, args: CarrierNetworkResponse.from_network(
            service.get_carrier_network(args.carrier_id, args.limit)
        ),
    ),
)

TOOLS_BY_NAME: dict[str, Tool] = {tool.name: tool for tool in TOOLS}


def server_info() -> dict:
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {"tools": {}},
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
    }


def list_tools() -> dict:
    return {"tools": [tool.describe() for tool in TOOLS]}
