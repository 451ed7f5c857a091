"""Shared helpers for the derived lane views."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from ...models.domain import ClassifiedLane


def established_lanes(lanes: Iterable[ClassifiedLane], low_volume_floor: int) -> list[ClassifiedLane]:
    """Lanes with enough shipments for the classifier to characterise them."""

    return [lane for lane in lanes if lane.volume >= low_volume_floor]


def weighted_mean(lanes: Sequence[ClassifiedLane], value: Callable[[ClassifiedLane], float]) -> float:
    total = sum(lane.volume for lane in lanes)
    if not total:
        return 0.0
    return sum(value(lane) * lane.volume for lane in lanes) / total


def group_lanes(
    lanes: Iterable[ClassifiedLane], key: Callable[[ClassifiedLane], str]
) -> dict[str, list[ClassifiedLane]]:
    groups: dict[str, list[ClassifiedLane]] = {}
    for lane in lanes:
        groups.setdefault(key(lane), []).append(lane)
    return groups
