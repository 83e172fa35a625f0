"""Compute impacted targets from two snapshots.

Impact definition (deterministic predicate):
A target is impacted if it is present in the end snapshot and either
1. it is absent from the start snapshot (added), or
2. its digest string differs between the two snapshots (changed).

Targets present only in the start snapshot (removed) are never impacted;
the comparison answers "what must be rebuilt going forward".
"""

from dataclasses import dataclass, field
from typing import Mapping, Set


@dataclass
class ImpactResult:
    """Result of impact analysis."""
    impacted: Set[str]  # added | changed
    added: Set[str]  # In end only
    changed: Set[str]  # In both, digest differs
    removed: Set[str] = field(default_factory=set)  # In start only; informational, never impacted


def impacted_targets(start: Mapping[str, str], end: Mapping[str, str]) -> Set[str]:
    """Names in ``end`` that are new or whose digest differs from ``start``."""
    impacted: Set[str] = set()
    for name, end_digest in end.items():
        start_digest = start.get(name)
        if start_digest is None or start_digest != end_digest:
            impacted.add(name)
    return impacted


def classify_impact(start: Mapping[str, str], end: Mapping[str, str]) -> ImpactResult:
    impacted = impacted_targets(start, end)
    added = {name for name in impacted if name not in start}
    return ImpactResult(
        impacted=impacted,
        added=added,
        changed=impacted - added,
        removed={name for name in start if name not in end},
    )
