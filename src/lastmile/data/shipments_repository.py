"""Data access helpers for loading shipment records and fingerprinting datasets."""

from __future__ import annotations

import csv
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol

from openpyxl import load_workbook

from ..config import settings
from ..models.domain import CarrierMode, OtdDesignation, Shipment

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")

# Column aliases: the original export headers first, then short snake-case forms.
_COLUMNS = {
    "load_id": ("load_id_pseudo", "load_id"),
    "carrier_id": ("carrier_pseudo", "carrier_id", "carrier"),
    "carrier_mode": ("carrier_mode", "mode"),
    "ship_at": ("actual_ship", "ship_at", "ship_date"),
    "delivered_at": ("actual_delivery", "delivered_at", "delivery_date"),
    "goal_transit_days": ("all_modes_goal_transit_days", "goal_transit_days"),
    "origin": ("origin_zip_3d", "origin", "origin_region"),
    "destination": ("dest_zip_3d", "destination", "dest", "destination_region"),
    "distance_bucket": ("distance_bucket",),
}


@dataclass(frozen=True, slots=True)
class DatasetFingerprint:
    """Identity of one dataset snapshot; any change triggers a cache rebuild."""

    marker: str
    row_count: Optional[int] = None


class ShipmentSource(Protocol):
    """Read-only access to validated shipments plus a cheap change detector."""

    def load(self) -> tuple[Shipment, ...]:
        ...

    def fingerprint(self) -> DatasetFingerprint:
        ...


def derive_otd(actual_transit_days: int, goal_transit_days: int, grace_days: int = 0) -> OtdDesignation:
    """Classify a delivery as Early, OnTime or Late against its goal."""

    if grace_days < 0:
        raise ValueError("grace_days must be >= 0")
    if actual_transit_days < goal_transit_days:
        return OtdDesignation.EARLY
    if actual_transit_days > goal_transit_days + grace_days:
        return OtdDesignation.LATE
    return OtdDesignation.ON_TIME


def transit_days_between(ship_at: datetime, delivered_at: datetime) -> int:
    """Whole calendar days between ship and delivery dates."""

    return (delivered_at.date() - ship_at.date()).days


def build_shipment(
    *,
    load_id: str,
    carrier_id: str,
    origin: str,
    destination: str,
    ship_at: datetime,
    delivered_at: datetime,
    goal_transit_days: int,
    carrier_mode: CarrierMode | str = CarrierMode.TRUCKLOAD,
    distance_bucket: Optional[str] = None,
    grace_days: Optional[int] = None,
) -> Shipment:
    """Create a shipment whose derived fields are consistent with its timestamps."""

    if delivered_at < ship_at:
        raise ValueError(f"Shipment '{load_id}' is delivered before it ships")
    if goal_transit_days < 0:
        raise ValueError(f"Shipment '{load_id}' has a negative goal transit ({goal_transit_days})")
    origin = origin.strip()
    destination = destination.strip()
    if not origin or not destination:
        raise ValueError(f"Shipment '{load_id}' is missing an origin or destination region")

    grace = settings.late_grace_days if grace_days is None else grace_days
    actual = transit_days_between(ship_at, delivered_at)
    mode = carrier_mode if isinstance(carrier_mode, CarrierMode) else CarrierMode.parse(carrier_mode)
    return Shipment(
        load_id=load_id,
        carrier_id=carrier_id,
        carrier_mode=mode,
        ship_at=ship_at,
        delivered_at=delivered_at,
        goal_transit_days=goal_transit_days,
        actual_transit_days=actual,
        otd=derive_otd(actual, goal_transit_days, grace),
        origin=origin,
        destination=destination,
        distance_bucket=distance_bucket or None,
    )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value or "").strip()
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unable to parse timestamp from value '{text}'")


def _coerce_int(value: object) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value or "").strip()
    if not text:
        raise ValueError("Missing integer value")
    return int(float(text.replace(",", "")))


def _pick(row: dict, field: str) -> object:
    for alias in _COLUMNS[field]:
        value = row.get(alias)
        if value not in (None, ""):
            return value
    return None


def parse_shipment_rows(rows: Iterable[dict], *, grace_days: Optional[int] = None) -> Iterator[Shipment]:
    """Turn raw tabular rows into validated shipments, skipping unusable rows."""

    for index, row in enumerate(rows, start=1):
        normalized = {str(key).strip().lower(): value for key, value in row.items() if key is not None}
        try:
            yield build_shipment(
                load_id=str(_pick(normalized, "load_id") or f"row-{index}").strip(),
                carrier_id=str(_pick(normalized, "carrier_id") or "").strip(),
                origin=str(_pick(normalized, "origin") or ""),
                destination=str(_pick(normalized, "destination") or ""),
                ship_at=_parse_timestamp(_pick(normalized, "ship_at")),
                delivered_at=_parse_timestamp(_pick(normalized, "delivered_at")),
                goal_transit_days=_coerce_int(_pick(normalized, "goal_transit_days")),
                carrier_mode=str(_pick(normalized, "carrier_mode") or ""),
                distance_bucket=str(_pick(normalized, "distance_bucket") or "").strip() or None,
                grace_days=grace_days,
            )
        except (TypeError, ValueError) as exc:
            logger.warning(f"Skipping shipment row {index}: {exc}")


def _read_csv_rows(path: Path) -> list[dict]:
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Shipment file '{path}' is missing a header row.")
        return list(reader)


def _read_xlsx_rows(path: Path) -> list[dict]:
    workbook = load_workbook(path, data_only=True, read_only=True)
    try:
        sheet = workbook.active
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Shipment workbook '{path}' is empty.")
        names = [str(cell) if cell is not None else "" for cell in header]
        return [dict(zip(names, row)) for row in rows]
    finally:
        workbook.close()


def load_shipments(source: Optional[Path] = None, *, grace_days: Optional[int] = None) -> tuple[Shipment, ...]:
    """Load shipments from the configured CSV or XLSX file."""

    path = source or settings.shipments_file
    if not path.exists():
        raise FileNotFoundError(f"Shipment file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        rows = _read_csv_rows(path)
    elif suffix == ".xlsx":
        rows = _read_xlsx_rows(path)
    else:
        raise ValueError(f"Unsupported shipment file type '{suffix}' (expected .csv or .xlsx)")

    shipments = tuple(parse_shipment_rows(rows, grace_days=grace_days))
    logger.info(f"Loaded {len(shipments)} shipments from {path.name} ({len(rows) - len(shipments)} skipped)")
    return shipments


class FileShipmentSource:
    """Shipment source backed by a CSV/XLSX file on disk."""

    def __init__(self, path: Optional[Path] = None, *, grace_days: Optional[int] = None) -> None:
        self.path = (path or settings.shipments_file).resolve()
        self.grace_days = grace_days

    def load(self) -> tuple[Shipment, ...]:
        return load_shipments(self.path, grace_days=self.grace_days)

    def fingerprint(self) -> DatasetFingerprint:
        stat = self.path.stat()
        return DatasetFingerprint(marker=f"{self.path.name}:{stat.st_size}:{stat.st_mtime_ns}")


class InMemoryShipmentSource:
    """Mutable in-process shipment collection, mainly for services embedding the engine."""

    def __init__(self, shipments: Iterable[Shipment] = ()) -> None:
        self._lock = threading.Lock()
        self._shipments: tuple[Shipment, ...] = tuple(shipments)
        self._version = 0

    def load(self) -> tuple[Shipment, ...]:
        with self._lock:
            return self._shipments

    def fingerprint(self) -> DatasetFingerprint:
        with self._lock:
            return DatasetFingerprint(marker=f"memory:{self._version}", row_count=len(self._shipments))

    def extend(self, shipments: Iterable[Shipment]) -> None:
        with self._lock:
            self._shipments = self._shipments + tuple(shipments)
            self._version += 1

    def replace(self, shipments: Iterable[Shipment]) -> None:
        with self._lock:
            self._shipments = tuple(shipments)
            self._version += 1
