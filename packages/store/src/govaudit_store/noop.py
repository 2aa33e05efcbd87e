"""No-op storage: accepts every write and keeps nothing.

With no shards, the dedup gate never finds an existing report, so every
pass re-audits every proposal. Useful only for trying the pipeline out.
"""

from __future__ import annotations

from govaudit_store.base import ADMIT_READY, BaseReportStorage, BaseShard


class NoOpStorage(BaseReportStorage):
    def admit(self) -> int:
        return ADMIT_READY

    def list_shards(self) -> list[BaseShard]:
        return []

    def save(self, proposal_id: str, encoded_title: str, encoded_report: str) -> str | None:
        return None
