"""Lane clustering helpers."""

from .playbooks import Playbook, all_playbooks, lookup
from .rules import ClusterRule, ClusterThresholds, LaneClassifier, build_rules

__all__ = [
    "ClusterRule",
    "ClusterThresholds",
    "LaneClassifier",
    "Playbook",
    "all_playbooks",
    "build_rules",
    "lookup",
]
