import logging
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook

from lastmile.data.shipments_repository import (
    FileShipmentSource,
    InMemoryShipmentSource,
    build_shipment,
    derive_otd,
    load_shipments,
    parse_shipment_rows,
    transit_days_between,
)
from lastmile.models.domain import CarrierMode, OtdDesignation

CSV_HEADER = (
    "load_id_pseudo,carrier_pseudo,carrier_mode,actual_ship,actual_delivery,"
    "all_modes_goal_transit_days,origin_zip_3d,dest_zip_3d,distance_bucket\n"
)


def _shipment(load_id: str = "L1", goal: int = 3, days: int = 3, **overrides):
    params = dict(
        load_id=load_id,
        carrier_id="CARR1",
        origin="750",
        destination="857",
        ship_at=datetime(2024, 3, 4, 8, 0),
        delivered_at=datetime(2024, 3, 4 + days, 15, 30),
        goal_transit_days=goal,
        grace_days=0,
    )
    params.update(overrides)
    return build_shipment(**params)


@pytest.mark.parametrize(
    "actual, goal, grace, expected",
    [
        (2, 3, 0, OtdDesignation.EARLY),
        (3, 3, 0, OtdDesignation.ON_TIME),
        (4, 3, 0, OtdDesignation.LATE),
        (4, 3, 1, OtdDesignation.ON_TIME),
        (5, 3, 1, OtdDesignation.LATE),
    ],
)
def test_derive_otd(actual, goal, grace, expected) -> None:
    assert derive_otd(actual, goal, grace) is expected


def test_derive_otd_rejects_negative_grace() -> None:
    with pytest.raises(ValueError):
        derive_otd(3, 3, -1)


def test_transit_days_count_calendar_days() -> None:
    assert transit_days_between(datetime(2024, 1, 1, 23, 0), datetime(2024, 1, 2, 1, 0)) == 1
    assert transit_days_between(datetime(2024, 1, 1, 1, 0), datetime(2024, 1, 1, 23, 0)) == 0


def test_build_shipment_derives_consistent_fields() -> None:
    shipment = _shipment(days=5, goal=3, carrier_mode="ltl")

    assert shipment.actual_transit_days == 5
    assert shipment.delay_days == 2
    assert shipment.otd is OtdDesignation.LATE
    assert shipment.carrier_mode is CarrierMode.LTL
    assert shipment.lane_key == ("750", "857")
    assert shipment.ship_dow == "Monday"


@pytest.mark.parametrize(
    "overrides",
    [
        {"delivered_at": datetime(2024, 3, 3)},
        {"goal_transit_days": -1},
        {"origin": "  "},
    ],
)
def test_build_shipment_rejects_invalid_records(overrides) -> None:
    with pytest.raises(ValueError):
        _shipment(**overrides)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("LTL", CarrierMode.LTL),
        ("Truckload-Flatbed", CarrierMode.TL_FLATBED),
        ("TL Dry", CarrierMode.TL_DRY),
        ("", CarrierMode.TRUCKLOAD),
        ("barge", CarrierMode.TRUCKLOAD),
    ],
)
def test_carrier_mode_parse(raw, expected) -> None:
    assert CarrierMode.parse(raw) is expected


def test_parse_rows_skips_unusable_records(caplog: pytest.LogCaptureFixture) -> None:
    rows = [
        {
            "load_id_pseudo": "A1",
            "carrier_pseudo": "C9",
            "actual_ship": "2024-01-01 08:00:00",
            "actual_delivery": "2024-01-03 10:00:00",
            "all_modes_goal_transit_days": "2",
            "origin_zip_3d": "750",
            "dest_zip_3d": "857",
        },
        {
            "load_id": "A2",
            "carrier_id": "C9",
            "ship_at": "not a date",
            "delivered_at": "2024-01-03",
            "goal_transit_days": "2",
            "origin": "750",
            "destination": "857",
        },
        {
            "load_id": "A3",
            "carrier_id": "C9",
            "ship_at": "2024-01-01",
            "delivered_at": "2024-01-02",
            "goal_transit_days": "2",
            "origin": "750",
            "destination": "",
        },
    ]

    with caplog.at_level(logging.WARNING):
        shipments = list(parse_shipment_rows(rows, grace_days=0))

    assert [s.load_id for s in shipments] == ["A1"]
    assert shipments[0].otd is OtdDesignation.ON_TIME
    assert "Skipping shipment row 2" in caplog.text
    assert "Skipping shipment row 3" in caplog.text


def test_load_shipments_from_csv(tmp_path: Path) -> None:
    path = tmp_path / "shipments.csv"
    path.write_text(
        CSV_HEADER
        + "L1,CARR1,LTL,2024-02-01 09:00:00,2024-02-03 12:00:00,3,750,857,<250\n"
        + "L2,CARR2,Truckload,2024-02-01 09:00:00,2024-02-06 12:00:00,3,750,857,<250\n",
        encoding="utf-8",
    )

    shipments = load_shipments(path, grace_days=0)

    assert len(shipments) == 2
    assert shipments[0].otd is OtdDesignation.EARLY
    assert shipments[1].otd is OtdDesignation.LATE
    assert shipments[1].carrier_mode is CarrierMode.TRUCKLOAD
    assert shipments[0].distance_bucket == "<250"


def test_load_shipments_from_xlsx(tmp_path: Path) -> None:
    path = tmp_path / "shipments.xlsx"
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["load_id", "carrier_id", "ship_at", "delivered_at", "goal_transit_days", "origin", "destination"])
    sheet.append(["X1", "C1", datetime(2024, 5, 1, 7), datetime(2024, 5, 3, 18), 2, "100", "200"])
    workbook.save(path)

    shipments = load_shipments(path, grace_days=0)

    assert len(shipments) == 1
    assert shipments[0].lane_key == ("100", "200")
    assert shipments[0].otd is OtdDesignation.ON_TIME


def test_load_shipments_rejects_missing_and_unsupported_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_shipments(tmp_path / "missing.csv")

    other = tmp_path / "shipments.json"
    other.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_shipments(other)


def test_file_source_fingerprint_tracks_file_changes(tmp_path: Path) -> None:
    path = tmp_path / "shipments.csv"
    path.write_text(CSV_HEADER + "L1,C1,LTL,2024-02-01,2024-02-03,3,750,857,\n", encoding="utf-8")
    source = FileShipmentSource(path, grace_days=0)

    before = source.fingerprint()
    assert before == source.fingerprint()

    with path.open("a", encoding="utf-8") as handle:
        handle.write("L2,C1,LTL,2024-02-01,2024-02-04,3,750,857,\n")

    assert source.fingerprint() != before
    assert len(source.load()) == 2


def test_in_memory_source_versions_every_mutation() -> None:
    source = InMemoryShipmentSource([_shipment("L1")])
    first = source.fingerprint()

    source.extend([_shipment("L2")])
    second = source.fingerprint()
    source.replace([])
    third = source.fingerprint()

    assert first.row_count == 1
    assert second.row_count == 2
    assert third.row_count == 0
    assert len({first, second, third}) == 3
    assert source.load() == ()
