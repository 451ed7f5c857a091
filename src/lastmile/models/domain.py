"""Domain models for shipments, lanes and cluster assignments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional


class CarrierMode(str, Enum):
    LTL = "LTL"
    TRUCKLOAD = "Truckload"
    TL_FLATBED = "TL Flatbed"
    TL_DRY = "TL Dry"

    @classmethod
    def parse(cls, value: Optional[str]) -> "CarrierMode":
        normalized = (value or "").strip().lower().replace("-", " ")
        for mode in cls:
            if mode.value.lower() == normalized:
                return mode
        if normalized in {"truckload flatbed", "tl flatbed"}:
            return cls.TL_FLATBED
        if normalized in {"truckload dry", "tl dry"}:
            return cls.TL_DRY
        return cls.TRUCKLOAD


class OtdDesignation(str, Enum):
    EARLY = "Early"
    ON_TIME = "OnTime"
    LATE = "Late"


class ClusterId(IntEnum):
    EARLY_STABLE = 1
    ON_TIME_RELIABLE = 2
    HIGH_JITTER = 3
    SYSTEMATICALLY_LATE = 4
    LOW_VOLUME_MIXED = 5

    @property
    def label(self) -> str:
        return CLUSTER_NAMES[self]


CLUSTER_NAMES: dict[ClusterId, str] = {
    ClusterId.EARLY_STABLE: "Early & Stable",
    ClusterId.ON_TIME_RELIABLE: "On-Time & Reliable",
    ClusterId.HIGH_JITTER: "High-Jitter",
    ClusterId.SYSTEMATICALLY_LATE: "Systematically Late",
    ClusterId.LOW_VOLUME_MIXED: "Low Volume / Mixed",
}


@dataclass(frozen=True, slots=True)
class Shipment:
    """A validated delivery record handed to the engine by the ingestion layer."""

    load_id: str
    carrier_id: str
    carrier_mode: CarrierMode
    ship_at: datetime
    delivered_at: datetime
    goal_transit_days: int
    actual_transit_days: int
    otd: OtdDesignation
    origin: str
    destination: str
    distance_bucket: Optional[str] = None

    @property
    def delay_days(self) -> int:
        return self.actual_transit_days - self.goal_transit_days

    @property
    def lane_key(self) -> tuple[str, str]:
        return (self.origin, self.destination)

    @property
    def ship_dow(self) -> str:
        return self.ship_at.strftime("%A")


@dataclass(frozen=True, slots=True)
class LaneMetrics:
    """Aggregated delivery behaviour of one origin -> destination lane."""

    origin: str
    destination: str
    volume: int
    avg_delay: float
    delay_variance: float
    avg_transit_days: float
    early_rate: float
    on_time_rate: float
    late_rate: float

    @property
    def key(self) -> tuple[str, str]:
        return (self.origin, self.destination)

    @property
    def route(self) -> str:
        return f"{self.origin} → {self.destination}"


@dataclass(frozen=True, slots=True)
class ClassifiedLane:
    """Lane metrics paired with the most recent cluster assignment."""

    metrics: LaneMetrics
    cluster: ClusterId

    @property
    def key(self) -> tuple[str, str]:
        return self.metrics.key

    @property
    def origin(self) -> str:
        return self.metrics.origin

    @property
    def destination(self) -> str:
        return self.metrics.destination

    @property
    def volume(self) -> int:
        return self.metrics.volume
