"""Derived analysis endpoints: friction, terminals, early deliveries, regions."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...schemas.insights import (
    EarlyAnalysisResponse,
    FrictionZoneModel,
    RegionalPerformanceResponse,
    TerminalReportResponse,
)
from ...services.lanes import LaneAnalyticsService
from ..dependencies import get_lane_service

router = APIRouter(tags=["analysis"])


@router.get("/analysis/friction", response_model=List[FrictionZoneModel], status_code=status.HTTP_200_OK)
def get_friction_zones(
    limit: int = Query(default=10, ge=0, le=500),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> List[FrictionZoneModel]:
    return [FrictionZoneModel.from_zone(zone) for zone in service.get_friction_zones(limit)]


@router.get("/analysis/terminals", response_model=TerminalReportResponse, status_code=status.HTTP_200_OK)
def get_terminal_performance(
    limit: int = Query(default=5, ge=0, le=500),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> TerminalReportResponse:
    return TerminalReportResponse.from_report(service.get_terminal_performance(limit))


@router.get("/analysis/early", response_model=EarlyAnalysisResponse, status_code=status.HTTP_200_OK)
def get_early_delivery_analysis(
    limit: int = Query(default=10, ge=0, le=500),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> EarlyAnalysisResponse:
    return EarlyAnalysisResponse.from_analysis(service.get_early_delivery_analysis(limit))


@router.get("/regions/{region}", response_model=RegionalPerformanceResponse, status_code=status.HTTP_200_OK)
def get_regional_performance(
    region: str,
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> RegionalPerformanceResponse:
    return RegionalPerformanceResponse.from_report(service.get_regional_performance(region))
