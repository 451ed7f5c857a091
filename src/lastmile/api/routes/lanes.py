"""Lane profile, listing and similarity endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Path, Query, status

from ...schemas.insights import NetworkStatsResponse
from ...schemas.lanes import CarrierNetworkResponse, LaneModel, LanePageResponse, SimilarLanesResponse
from ...services.lanes import LaneAnalyticsService
from ..dependencies import get_lane_service

router = APIRouter(tags=["lanes"])


@router.get("/stats", response_model=NetworkStatsResponse, status_code=status.HTTP_200_OK)
def get_network_stats(service: LaneAnalyticsService = Depends(get_lane_service)) -> NetworkStatsResponse:
    return NetworkStatsResponse.from_stats(service.get_network_stats())


@router.get("/lanes", response_model=LanePageResponse, status_code=status.HTTP_200_OK)
def list_lanes(
    page: int = Query(default=1, ge=1, description="1-based page index"),
    page_size: int = Query(default=100, ge=1, le=1000, description="Maximum number of lanes per page"),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> LanePageResponse:
    offset = (page - 1) * page_size
    return LanePageResponse.from_page(service.list_lanes(limit=page_size, offset=offset))


@router.get("/lanes/{origin}/{dest}", response_model=LaneModel, status_code=status.HTTP_200_OK)
def get_lane_profile(
    origin: str = Path(..., description="Origin region code (e.g. '750')"),
    dest: str = Path(..., description="Destination region code (e.g. '857')"),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> LaneModel:
    return LaneModel.from_lane(service.get_lane_profile(origin, dest))


@router.get("/lanes/{origin}/{dest}/similar", response_model=SimilarLanesResponse, status_code=status.HTTP_200_OK)
def find_similar_lanes(
    origin: str,
    dest: str,
    k: int | None = Query(default=None, ge=0, description="Number of similar lanes to return"),
    metric: Literal["euclidean", "manhattan", "cosine"] | None = Query(default=None),
    same_cluster: bool = Query(default=False, description="Only consider lanes in the reference lane's cluster"),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> SimilarLanesResponse:
    result = service.find_similar_lanes(origin, dest, k, metric=metric, same_cluster=same_cluster)
    return SimilarLanesResponse.from_result(result)


@router.get("/carriers/{carrier_id}", response_model=CarrierNetworkResponse, status_code=status.HTTP_200_OK)
def get_carrier_network(
    carrier_id: str = Path(..., description="Carrier identifier as it appears in the shipment data"),
    limit: int = Query(default=20, ge=0, le=1000, description="Maximum number of lanes to return"),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> CarrierNetworkResponse:
    return CarrierNetworkResponse.from_network(service.get_carrier_network(carrier_id, limit))
