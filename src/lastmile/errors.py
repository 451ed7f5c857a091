"""Error taxonomy shared by the engine and its boundary layers."""

from __future__ import annotations

from typing import Any


class LaneAnalyticsError(Exception):
    """Base class for failures surfaced to callers of the lane engine."""

    code = "error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "context": self.context}


class NotFoundError(LaneAnalyticsError, LookupError):
    """A lane, region or cluster is absent from the current dataset."""

    code = "not_found"


class InvalidArgumentError(LaneAnalyticsError, ValueError):
    """A request argument was rejected before any aggregation work."""

    code = "invalid_argument"


class RecomputationError(LaneAnalyticsError):
    """The shipment source failed while a snapshot was being rebuilt."""

    code = "recomputation_failed"
