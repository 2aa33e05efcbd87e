"""Records exchanged across the storage boundary."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReportItem:
    """A stored report as returned by a shard lookup.

    Both `proposal_title` and `report` are transport-encoded strings
    (see govaudit_store.codec); shards never look inside them.
    """

    proposal_id: str
    proposal_title: str
    report: str
