"""Per-carrier lane networks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ...models.domain import CarrierMode, ClassifiedLane, LaneMetrics, OtdDesignation, Shipment
from .aggregator import aggregate_lanes, for_carrier

Classify = Callable[[Sequence[LaneMetrics]], Sequence[ClassifiedLane]]


@dataclass(frozen=True, slots=True)
class CarrierNetwork:
    carrier_id: str
    modes: tuple[CarrierMode, ...]
    total_shipments: int
    total_lanes: int
    early_rate: float
    on_time_rate: float
    late_rate: float
    origins: tuple[str, ...]
    destinations: tuple[str, ...]
    lanes: tuple[ClassifiedLane, ...]


def carrier_ids(shipments: Sequence[Shipment]) -> frozenset[str]:
    return frozenset(shipment.carrier_id.strip().lower() for shipment in shipments)


def compute_carrier_network(
    shipments: Sequence[Shipment],
    carrier_id: str,
    classify: Classify,
    *,
    limit: Optional[int] = None,
) -> CarrierNetwork:
    """Lanes served by one carrier, highest volume first, with its OTD mix.

    Lane metrics cover only that carrier's shipments, so a lane can land in a
    different cluster here than in the network-wide table.
    """

    matches = for_carrier(carrier_id)
    own = [shipment for shipment in shipments if matches(shipment)]
    lanes = sorted(classify(aggregate_lanes(shipments, predicate=matches)), key=lambda lane: (-lane.volume, lane.key))
    total = len(own)

    def rate(designation: OtdDesignation) -> float:
        return sum(1 for shipment in own if shipment.otd is designation) / total if total else 0.0

    return CarrierNetwork(
        carrier_id=own[0].carrier_id if own else carrier_id.strip(),
        modes=tuple(sorted({shipment.carrier_mode for shipment in own}, key=lambda mode: mode.value)),
        total_shipments=total,
        total_lanes=len(lanes),
        early_rate=rate(OtdDesignation.EARLY),
        on_time_rate=rate(OtdDesignation.ON_TIME),
        late_rate=rate(OtdDesignation.LATE),
        origins=tuple(sorted({lane.origin for lane in lanes})),
        destinations=tuple(sorted({lane.destination for lane in lanes})),
        lanes=tuple(lanes[:limit]),
    )
