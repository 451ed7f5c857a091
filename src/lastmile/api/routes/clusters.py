"""Cluster summary and playbook endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...schemas.lanes import ClusterModel, LaneModel, PlaybookModel
from ...services.lanes import LaneAnalyticsService
from ..dependencies import get_lane_service

router = APIRouter(prefix="/clusters", tags=["clusters"])


@router.get("", response_model=List[ClusterModel], status_code=status.HTTP_200_OK)
def get_lane_clusters(service: LaneAnalyticsService = Depends(get_lane_service)) -> List[ClusterModel]:
    return [ClusterModel.from_summary(summary) for summary in service.get_lane_clusters()]


@router.get("/{cluster_id}/lanes", response_model=List[LaneModel], status_code=status.HTTP_200_OK)
def get_lanes_in_cluster(
    cluster_id: int,
    limit: int = Query(default=20, ge=0, le=1000),
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> List[LaneModel]:
    return [LaneModel.from_lane(lane) for lane in service.get_lanes_in_cluster(cluster_id, limit)]


@router.get("/{cluster_id}/playbook", response_model=PlaybookModel, status_code=status.HTTP_200_OK)
def get_cluster_playbook(
    cluster_id: int,
    service: LaneAnalyticsService = Depends(get_lane_service),
) -> PlaybookModel:
    return PlaybookModel.from_playbook(service.get_cluster_playbook(cluster_id))
