import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from itertools import count

import pytest

from lastmile.config import Settings
from lastmile.data.shipments_repository import InMemoryShipmentSource, build_shipment
from lastmile.errors import InvalidArgumentError, NotFoundError, RecomputationError
from lastmile.models.domain import CarrierMode, ClusterId
from lastmile.services.lanes import LaneAnalyticsService

_ids = count(1)


def _shipments(origin: str, dest: str, delays: list[int], goal: int = 3, carrier: str = "C1"):
    ship_at = datetime(2024, 6, 3, 9, 0)
    return [
        build_shipment(
            load_id=f"S{next(_ids)}",
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


def _network():
    return (
        _shipments("750", "857", [-1] * 20)  # early & stable
        + _shipments("750", "900", [0] * 30)  # on-time & reliable
        + _shipments("751", "857", [-3, 3] * 10)  # high jitter
        + _shipments("752", "900", [2] * 15)  # systematically late
        + _shipments("753", "111", [0] * 3)  # low volume
    )


class BrokenSource:
    def load(self):
        raise RuntimeError("database offline")

    def fingerprint(self):
        raise RuntimeError("database offline")


@pytest.fixture
def source() -> InMemoryShipmentSource:
    return InMemoryShipmentSource(_network())


@pytest.fixture
def service(source: InMemoryShipmentSource) -> LaneAnalyticsService:
    return LaneAnalyticsService(source, Settings())


def test_lane_clusters_cover_all_five(service: LaneAnalyticsService) -> None:
    summaries = service.get_lane_clusters()

    assert [s.cluster for s in summaries] == list(ClusterId)
    assert [s.lane_count for s in summaries] == [1, 1, 1, 1, 1]
    assert [s.total_volume for s in summaries] == [20, 30, 20, 15, 3]
    assert summaries[2].avg_variance == pytest.approx(9.0)
    assert summaries[3].avg_late_rate == pytest.approx(1.0)


def test_empty_dataset_returns_five_empty_clusters() -> None:
    service = LaneAnalyticsService(InMemoryShipmentSource(), Settings())

    summaries = service.get_lane_clusters()

    assert len(summaries) == 5
    assert all(s.total_volume == 0 and s.lane_count == 0 for s in summaries)
    assert service.get_friction_zones() == ()
    assert service.get_network_stats().total_shipments == 0


def test_lanes_in_cluster(service: LaneAnalyticsService) -> None:
    (lane,) = service.get_lanes_in_cluster(1)

    assert lane.key == ("750", "857")
    assert service.get_lanes_in_cluster(ClusterId.SYSTEMATICALLY_LATE)[0].key == ("752", "900")
    assert service.get_lanes_in_cluster(1, limit=0) == ()


@pytest.mark.parametrize("cluster_id", [0, 6, -1, "x"])
def test_out_of_range_cluster_is_rejected(service: LaneAnalyticsService, cluster_id) -> None:
    with pytest.raises(InvalidArgumentError):
        service.get_lanes_in_cluster(cluster_id)
    with pytest.raises(InvalidArgumentError):
        service.get_cluster_playbook(cluster_id)


def test_arguments_are_validated_before_any_data_access() -> None:
    service = LaneAnalyticsService(BrokenSource(), Settings())

    with pytest.raises(InvalidArgumentError):
        service.get_lanes_in_cluster(9)
    with pytest.raises(InvalidArgumentError):
        service.get_friction_zones(-1)
    with pytest.raises(InvalidArgumentError):
        service.get_regional_performance("not a region!")
    with pytest.raises(RecomputationError):
        service.get_lane_clusters()


def test_lane_profile(service: LaneAnalyticsService) -> None:
    lane = service.get_lane_profile("750", "857")

    assert lane.cluster is ClusterId.EARLY_STABLE
    assert lane.metrics.avg_delay == pytest.approx(-1.0)
    assert lane.metrics.early_rate == pytest.approx(1.0)


def test_missing_lane_is_not_found(service: LaneAnalyticsService) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        service.get_lane_profile("857", "750")

    assert excinfo.value.context == {"origin": "857", "dest": "750"}


def test_malformed_region_code_is_invalid(service: LaneAnalyticsService) -> None:
    with pytest.raises(InvalidArgumentError):
        service.get_lane_profile("", "857")
    with pytest.raises(InvalidArgumentError):
        service.get_lane_profile("75/0", "857")


def test_cluster_playbook(service: LaneAnalyticsService) -> None:
    assert service.get_cluster_playbook(4).name == "Systematically Late"


def test_similar_lanes_exclude_reference(service: LaneAnalyticsService) -> None:
    result = service.find_similar_lanes("750", "857", 2)

    assert result.reference.key == ("750", "857")
    assert result.metric == "euclidean"
    assert result.playbook.cluster is ClusterId.EARLY_STABLE
    assert len(result.matches) == 2
    assert ("750", "857") not in {m.lane.key for m in result.matches}
    assert [m.distance for m in result.matches] == sorted(m.distance for m in result.matches)


def test_similar_lanes_options(service: LaneAnalyticsService) -> None:
    assert service.find_similar_lanes("750", "857", same_cluster=True).matches == ()
    assert len(service.find_similar_lanes("750", "857").matches) == 4
    assert service.find_similar_lanes("750", "857", 3, metric="manhattan").metric == "manhattan"

    with pytest.raises(InvalidArgumentError):
        service.find_similar_lanes("750", "857", 101)
    with pytest.raises(InvalidArgumentError):
        service.find_similar_lanes("750", "857", -1)
    with pytest.raises(InvalidArgumentError):
        service.find_similar_lanes("750", "857", metric="chebyshev")
    with pytest.raises(NotFoundError):
        service.find_similar_lanes("999", "857")


def test_list_lanes_pages_by_volume(service: LaneAnalyticsService) -> None:
    page = service.list_lanes(limit=2)

    assert [lane.key for lane in page.items] == [("750", "900"), ("750", "857")]
    assert page.total == 5
    assert [lane.key for lane in service.list_lanes(limit=2, offset=4).items] == [("753", "111")]


def test_friction_zones(source: InMemoryShipmentSource) -> None:
    assert LaneAnalyticsService(source, Settings()).get_friction_zones() == ()

    zones = LaneAnalyticsService(source, Settings(friction_min_volume=0)).get_friction_zones()

    assert [zone.destination for zone in zones] == ["857", "900"]
    assert zones[0].friction_score == pytest.approx(0.25 * 10 + 4.5)
    assert zones[1].friction_score == pytest.approx(10 / 3)


def test_terminal_performance(source: InMemoryShipmentSource) -> None:
    report = LaneAnalyticsService(source, Settings(terminal_min_volume=0)).get_terminal_performance()

    assert report.total_terminals == 3
    assert report.ranked[0].origin == "750"
    assert report.worst[0].origin == "752"
    assert report.total_volume == 85


def test_early_delivery_analysis(service: LaneAnalyticsService) -> None:
    analysis = service.get_early_delivery_analysis()

    assert analysis.total_shipments == 88
    assert analysis.early_shipments == 30
    assert [item.lane.key for item in analysis.lanes] == [("750", "857")]
    assert analysis.lanes[0].buffer_days == pytest.approx(1.0)


def test_regional_performance(service: LaneAnalyticsService) -> None:
    report = service.get_regional_performance("857")

    assert report.total_lanes == 2
    assert report.inbound_lanes == 2
    assert report.outbound_lanes == 0
    assert report.total_volume == 40

    with pytest.raises(NotFoundError):
        service.get_regional_performance("999")


def test_regional_performance_on_empty_dataset() -> None:
    service = LaneAnalyticsService(InMemoryShipmentSource(), Settings())

    report = service.get_regional_performance("857")

    assert report.total_lanes == 0
    assert report.late_rate == 0.0


def test_network_stats(service: LaneAnalyticsService) -> None:
    stats = service.get_network_stats()

    assert stats.total_shipments == 88
    assert stats.total_lanes == 5
    assert stats.total_regions == 7


def test_views_are_memoized_until_data_changes(service: LaneAnalyticsService, source: InMemoryShipmentSource) -> None:
    first = service.get_terminal_performance()
    snapshot = service.snapshot()
    assert service.get_terminal_performance() == first
    assert service.snapshot() is snapshot
    assert service.cache.rebuild_count == 1

    source.extend(_shipments("760", "857", [0] * 12))

    assert service.get_network_stats().total_lanes == 6
    assert service.snapshot() is not snapshot
    assert service.cache.rebuild_count == 2


def test_refresh_and_close(service: LaneAnalyticsService) -> None:
    service.snapshot()
    service.refresh()
    assert service.cache.rebuild_count == 2

    service.close()
    assert service.cache.peek() is None


class FlakySource(InMemoryShipmentSource):
    def __init__(self, shipments=()) -> None:
        super().__init__(shipments)
        self.failing = False
        self.loads = 0

    def load(self):
        self.loads += 1
        if self.failing:
            raise RuntimeError("warehouse offline")
        return super().load()


def test_storage_outage_fails_one_request_and_serves_previous_snapshot() -> None:
    source = FlakySource(_network())
    service = LaneAnalyticsService(source, Settings())
    before = service.get_lane_clusters()

    source.extend(_shipments("760", "857", [0] * 12))
    source.failing = True
    barrier = threading.Barrier(4)

    def worker():
        barrier.wait()
        try:
            return service.get_lane_clusters()
        except RecomputationError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda _: worker(), range(4)))

    assert sum(isinstance(r, RecomputationError) for r in results) == 1
    assert all(r == before for r in results if not isinstance(r, RecomputationError))
    assert service.get_lane_clusters() == before
    assert service.get_network_stats().total_shipments == 88
    assert source.loads == 2


def test_recovery_after_outage_once_retry_window_passes() -> None:
    source = FlakySource(_network())
    service = LaneAnalyticsService(source, Settings(cache_retry_seconds=0))
    service.get_lane_clusters()

    source.extend(_shipments("760", "857", [0] * 12))
    source.failing = True
    with pytest.raises(RecomputationError):
        service.get_network_stats()

    source.failing = False
    assert service.get_network_stats().total_lanes == 6


def test_memoized_views_stay_bounded(service: LaneAnalyticsService) -> None:
    for code in range(2000, 2200):
        with pytest.raises(NotFoundError):
            service.get_regional_performance(str(code))
    for limit in range(50):
        service.get_friction_zones(limit)
        service.get_terminal_performance(limit)
        service.get_early_delivery_analysis(limit)

    assert service.snapshot().view_count == 4


def test_limits_slice_the_memoized_ranking(source: InMemoryShipmentSource) -> None:
    service = LaneAnalyticsService(source, Settings(terminal_min_volume=0))

    assert [t.origin for t in service.get_terminal_performance(1).ranked] == ["750"]
    assert len(service.get_terminal_performance(10).ranked) == 3
    assert len(service.get_terminal_performance(0).worst) == 0
    assert service.get_early_delivery_analysis(0).lanes == ()
    assert len(service.get_early_delivery_analysis(5).lanes) == 1


def test_similar_lanes_read_a_single_snapshot(service: LaneAnalyticsService, monkeypatch) -> None:
    calls = []
    original = service.snapshot

    def counting_snapshot():
        calls.append(1)
        return original()

    monkeypatch.setattr(service, "snapshot", counting_snapshot)

    result = service.find_similar_lanes("750", "857", 2)

    assert len(calls) == 1
    assert len(result.matches) == 2


def test_carrier_network() -> None:
    shipments = _network() + _shipments("750", "857", [0] * 12, carrier="C2")
    service = LaneAnalyticsService(InMemoryShipmentSource(shipments), Settings())

    network = service.get_carrier_network("c2")

    assert network.carrier_id == "C2"
    assert network.modes == (CarrierMode.TRUCKLOAD,)
    assert network.total_shipments == 12
    assert network.total_lanes == 1
    assert network.on_time_rate == pytest.approx(1.0)
    assert network.origins == ("750",) and network.destinations == ("857",)
    (lane,) = network.lanes
    assert lane.cluster is ClusterId.ON_TIME_RELIABLE

    main = service.get_carrier_network("C1", limit=2)
    assert main.total_shipments == 88
    assert main.total_lanes == 5
    assert main.origins == ("750", "751", "752", "753")
    assert main.destinations == ("111", "857", "900")
    assert [lane.key for lane in main.lanes] == [("750", "900"), ("750", "857")]
    assert main.early_rate == pytest.approx(30 / 88)


def test_carrier_network_validation(service: LaneAnalyticsService) -> None:
    with pytest.raises(InvalidArgumentError):
        service.get_carrier_network("  ")
    with pytest.raises(InvalidArgumentError):
        service.get_carrier_network("C1", limit=-1)
    with pytest.raises(NotFoundError):
        service.get_carrier_network("C404")
