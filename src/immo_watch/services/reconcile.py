"""Snapshot reconciliation: which listings appeared since the last cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, List, Sequence

from immo_watch.models import CandidateListing


@dataclass
class Reconciliation:
    new_listings: List[CandidateListing] = field(default_factory=list)
    snapshot_to_persist: List[CandidateListing] = field(default_factory=list)


def reconcile(candidates: Sequence[CandidateListing], prior_urls: AbstractSet[str]) -> Reconciliation:
    """Split the filtered candidates into new listings and the full snapshot.

    A listing is new when its URL was not in the prior snapshot; a changed
    price on a known URL does not make it new. The snapshot is the whole
    candidate set, replacing the prior one.
    """
    seen: set[str] = set()
    new: List[CandidateListing] = []
    for item in candidates:
        if item.url in prior_urls or item.url in seen:
            continue
        seen.add(item.url)
        new.append(item)
    return Reconciliation(new_listings=new, snapshot_to_persist=list(candidates))
