from datetime import datetime, timedelta
from itertools import count

import pytest

from lastmile.data.shipments_repository import build_shipment
from lastmile.services.lanes import aggregate_lanes, for_carrier, group_by_lane, summarize_lane

_ids = count(1)


def _shipments(origin: str, dest: str, delays: list[int], goal: int = 3, carrier: str = "C1"):
    ship_at = datetime(2024, 6, 3, 9, 0)
    return [
        build_shipment(
            load_id=f"L{next(_ids)}",
            carrier_id=carrier,
            origin=origin,
            destination=dest,
            ship_at=ship_at,
            delivered_at=ship_at + timedelta(days=goal + delay),
            goal_transit_days=goal,
            grace_days=0,
        )
        for delay in delays
    ]


def test_empty_input_yields_no_lanes() -> None:
    assert aggregate_lanes([]) == ()


def test_single_lane_statistics() -> None:
    (lane,) = aggregate_lanes(_shipments("750", "857", [-1, 0, 1, 2]))

    assert lane.key == ("750", "857")
    assert lane.volume == 4
    assert lane.avg_delay == pytest.approx(0.5)
    assert lane.delay_variance == pytest.approx(1.25)
    assert lane.avg_transit_days == pytest.approx(3.5)
    assert lane.early_rate == pytest.approx(0.25)
    assert lane.on_time_rate == pytest.approx(0.25)
    assert lane.late_rate == pytest.approx(0.5)


def test_rates_sum_to_one_for_every_lane() -> None:
    shipments = (
        _shipments("750", "857", [-2, -1, 0, 0, 3])
        + _shipments("100", "200", [0, 0, 0])
        + _shipments("300", "857", [1, 4, -1, 2, 0, 0, 0])
    )

    for lane in aggregate_lanes(shipments):
        assert lane.early_rate + lane.on_time_rate + lane.late_rate == pytest.approx(1.0, abs=1e-6)


def test_lanes_are_ordered_by_key_and_parallel_pass_matches_sequential() -> None:
    shipments = (
        _shipments("900", "111", [0, 1])
        + _shipments("100", "857", [2, -1, 0])
        + _shipments("100", "200", [0])
        + _shipments("500", "600", [5, -2, 1, 1])
    )

    sequential = aggregate_lanes(shipments)
    parallel = aggregate_lanes(list(reversed(shipments)), workers=4)

    assert [lane.key for lane in sequential] == [("100", "200"), ("100", "857"), ("500", "600"), ("900", "111")]
    assert parallel == sequential


def test_origin_and_destination_are_ordered() -> None:
    lanes = aggregate_lanes(_shipments("A", "B", [0]) + _shipments("B", "A", [1, 1]))

    assert {lane.key: lane.volume for lane in lanes} == {("A", "B"): 1, ("B", "A"): 2}


def test_carrier_filter_narrows_input() -> None:
    shipments = _shipments("750", "857", [0, 0], carrier="FAST") + _shipments("750", "857", [3], carrier="slow")

    (lane,) = aggregate_lanes(shipments, predicate=for_carrier(" fast "))

    assert lane.volume == 2
    assert lane.late_rate == 0.0


def test_summarize_lane_rejects_empty_group() -> None:
    with pytest.raises(ValueError):
        summarize_lane(("750", "857"), [])


def test_group_by_lane_keeps_every_shipment() -> None:
    shipments = _shipments("1", "2", [0, 0]) + _shipments("2", "1", [0])

    groups = group_by_lane(shipments)

    assert sorted(len(members) for members in groups.values()) == [1, 2]
