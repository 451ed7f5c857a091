"""Reduce shipment records into one metrics record per lane."""

from __future__ import annotations

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from ...models.domain import LaneMetrics, OtdDesignation, Shipment

LaneKey = tuple[str, str]


def group_by_lane(shipments: Iterable[Shipment]) -> dict[LaneKey, list[Shipment]]:
    groups: dict[LaneKey, list[Shipment]] = defaultdict(list)
    for shipment in shipments:
        groups[shipment.lane_key].append(shipment)
    return groups


def summarize_lane(key: LaneKey, shipments: Sequence[Shipment]) -> LaneMetrics:
    """Compute volume, delay statistics and OTD rates for one lane group."""

    volume = len(shipments)
    if volume == 0:
        raise ValueError(f"Lane {key[0]} -> {key[1]} has no shipments to summarize")

    delays = np.fromiter((s.delay_days for s in shipments), dtype=float, count=volume)
    transits = np.fromiter((s.actual_transit_days for s in shipments), dtype=float, count=volume)

    early = on_time = late = 0
    for shipment in shipments:
        if shipment.otd is OtdDesignation.EARLY:
            early += 1
        elif shipment.otd is OtdDesignation.LATE:
            late += 1
        else:
            on_time += 1

    return LaneMetrics(
        origin=key[0],
        destination=key[1],
        volume=volume,
        avg_delay=float(delays.mean()),
        # population variance (ddof=0)
        delay_variance=float(delays.var()),
        avg_transit_days=float(transits.mean()),
        early_rate=early / volume,
        on_time_rate=on_time / volume,
        late_rate=late / volume,
    )


def aggregate_lanes(
    shipments: Iterable[Shipment],
    *,
    workers: int = 1,
    predicate: Optional[Callable[[Shipment], bool]] = None,
) -> tuple[LaneMetrics, ...]:
    """Aggregate shipments into lane metrics ordered by (origin, destination).

    ``predicate`` narrows the input first (for example a single carrier).
    With ``workers`` > 1 lane groups are summarized on a thread pool; the
    output is identical to the sequential pass.
    """

    if predicate is not None:
        shipments = (s for s in shipments if predicate(s))
    groups = group_by_lane(shipments)
    keys = sorted(groups)
    if not keys:
        return tuple()

    if workers > 1 and len(keys) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return tuple(executor.map(lambda key: summarize_lane(key, groups[key]), keys))
    return tuple(summarize_lane(key, groups[key]) for key in keys)


def for_carrier(carrier_id: str) -> Callable[[Shipment], bool]:
    normalized = carrier_id.strip().lower()
    return lambda shipment: shipment.carrier_id.strip().lower() == normalized
