"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Request

from ..services.lanes import LaneAnalyticsService


def get_lane_service(request: Request) -> LaneAnalyticsService:
    return request.app.state.lane_service
