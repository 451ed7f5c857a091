"""Static operating playbooks keyed by cluster."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ...models.domain import ClusterId


@dataclass(frozen=True, slots=True)
class Playbook:
    cluster: ClusterId
    name: str
    description: str
    actions: tuple[str, ...]


_PLAYBOOKS: Mapping[ClusterId, Playbook] = MappingProxyType(
    {
        ClusterId.EARLY_STABLE: Playbook(
            cluster=ClusterId.EARLY_STABLE,
            name=ClusterId.EARLY_STABLE.label,
            description="Consistently arrive 0.5-2 days early with low variance",
            actions=(
                "Implement hold-until policies at local depot",
                "Offer tight customer delivery windows",
                "Consider tightening SLA promises (reduce buffer)",
                "Use for premium time-slot offerings",
            ),
        ),
        ClusterId.ON_TIME_RELIABLE: Playbook(
            cluster=ClusterId.ON_TIME_RELIABLE,
            name=ClusterId.ON_TIME_RELIABLE.label,
            description="High on-time rate with predictable transit",
            actions=(
                "Maintain current operations - these are your best lanes",
                "Use as benchmark for other lanes",
                "Suitable for guaranteed delivery promises",
                "Monitor for degradation, protect capacity",
            ),
        ),
        ClusterId.HIGH_JITTER: Playbook(
            cluster=ClusterId.HIGH_JITTER,
            name=ClusterId.HIGH_JITTER.label,
            description="Average is OK but high variance - unpredictable",
            actions=(
                "Add buffer days to customer promises",
                "Avoid 'guaranteed by noon' commitments",
                "Route to lockers/pickup points to handle timing uncertainty",
                "Investigate root cause: carrier issues? weather corridors?",
            ),
        ),
        ClusterId.SYSTEMATICALLY_LATE: Playbook(
            cluster=ClusterId.SYSTEMATICALLY_LATE,
            name=ClusterId.SYSTEMATICALLY_LATE.label,
            description="Consistently miss SLA - structural problem",
            actions=(
                "Downgrade promise (next-day to 2-day) for these lanes",
                "Negotiate with carriers or switch providers",
                "Consider pre-positioning inventory closer to destination",
                "Flag for carrier performance review",
            ),
        ),
        ClusterId.LOW_VOLUME_MIXED: Playbook(
            cluster=ClusterId.LOW_VOLUME_MIXED,
            name=ClusterId.LOW_VOLUME_MIXED.label,
            description="Insufficient data or mixed patterns",
            actions=(
                "Apply conservative SLA buffers",
                "Monitor as volume grows",
                "Consider consolidating with similar lanes",
                "Default to standard operating procedures",
            ),
        ),
    }
)


def lookup(cluster: ClusterId) -> Playbook:
    """Return the playbook for a cluster. Every ``ClusterId`` has one."""

    return _PLAYBOOKS[ClusterId(cluster)]


def all_playbooks() -> tuple[Playbook, ...]:
    return tuple(_PLAYBOOKS[cluster] for cluster in ClusterId)
