from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from govaudit_store.base import BaseReportStorage, BaseShard

logger = logging.getLogger(__name__)


class DedupGate:
    """Answers "has this proposal already been reported?" across every shard.

    A failed lookup counts as "not confirmed": the proposal is processed again
    rather than silently dropped. Under a partial shard outage this can write
    a second report for the same proposal.
    """

    def __init__(self, storage: BaseReportStorage):
        self._storage = storage

    def already_reported(self, proposal_id: str, shards: Sequence[BaseShard] | None = None) -> bool:
        if shards is None:
            try:
                shards = self._storage.list_shards()
            except Exception as e:
                logger.warning("Shard discovery failed; treating %s as unreported: %s", proposal_id, e)
                return False

        for shard in shards:
            try:
                item = shard.get_report(proposal_id)
            except Exception as e:
                logger.warning("Lookup of %s on %s failed: %s", proposal_id, getattr(shard, "shard_id", shard), e)
                continue
            if item is not None and item.proposal_id == proposal_id:
                return True
        return False
