"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...services.lanes import LaneAnalyticsService
from ..dependencies import get_lane_service

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/snapshot", status_code=status.HTTP_200_OK)
def health_snapshot(service: LaneAnalyticsService = Depends(get_lane_service)) -> dict:
    """Report the cached lane snapshot without triggering a rebuild."""
    snapshot = service.cache.peek()
    if snapshot is None:
        return {"cached": False, "rebuilds": service.cache.rebuild_count}
    return {
        "cached": True,
        "fingerprint": snapshot.fingerprint.marker,
        "row_count": snapshot.fingerprint.row_count,
        "lanes": len(snapshot),
        "views": snapshot.view_count,
        "built_at": snapshot.built_at.isoformat(),
        "rebuilds": service.cache.rebuild_count,
    }
