"""Abstract storage contract.

A storage front-end owns zero or more shards. The audit pipeline only ever
talks to the front-end for shard discovery, admission and writes, and to the
shards for point lookups, so a backend (SQLite, a remote ledger service,
an in-memory fake) is swappable without touching govaudit_core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from govaudit_store.models import ReportItem

# admit() status codes. Anything other than ADMIT_READY means "do not write".
ADMIT_READY = 0
ADMIT_CAPACITY_EXHAUSTED = 1

_LIST_PAGE_SIZE = 100


class BaseShard(ABC):
    """One independent unit of report storage, keyed by proposal id."""

    shard_id: str

    @abstractmethod
    def get_report(self, proposal_id: str) -> ReportItem | None:
        """Return the stored record for proposal_id, or None if absent."""

    @abstractmethod
    def list_reports(self, offset: int = 0, limit: int = _LIST_PAGE_SIZE) -> list[str]:
        """Return up to `limit` stored proposal ids starting at `offset`."""


class BaseReportStorage(ABC):
    """Front-end of a sharded report store.

    Implementations route writes to a shard internally; callers never pick
    the shard themselves.
    """

    @abstractmethod
    def admit(self) -> int:
        """Capacity check consulted before every write.

        Returns ADMIT_READY (0) when a write may proceed, any other code otherwise.
        """

    @abstractmethod
    def list_shards(self) -> list[BaseShard]:
        """Return handles for every shard currently known to the front-end."""

    @abstractmethod
    def save(self, proposal_id: str, encoded_title: str, encoded_report: str) -> str | None:
        """Persist an encoded report and return the id of the shard that took it.

        Returns None when the front-end rejected the write.
        """

    def iter_reports(self) -> Iterator[tuple[str, ReportItem]]:
        """Yield (shard_id, record) for every report on every shard."""
        for shard in self.list_shards():
            offset = 0
            while True:
                ids = shard.list_reports(offset=offset, limit=_LIST_PAGE_SIZE)
                for proposal_id in ids:
                    item = shard.get_report(proposal_id)
                    if item is not None:
                        yield shard.shard_id, item
                if len(ids) < _LIST_PAGE_SIZE:
                    break
                offset += len(ids)

    def close(self) -> None:
        """Release any resources held by the storage (connections, sessions).

        Default is a no-op so callers can always call close() safely.
        """
