"""Proposal sources.

The pipeline never fetches proposals itself; the scheduler's job asks a
source for the latest proposals on each tick and hands them over.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import requests

from govaudit_core.models import Proposal

logger = logging.getLogger(__name__)


class BaseProposalSource(ABC):
    @abstractmethod
    def fetch(self, topic: str, limit: int) -> list[Proposal]:
        """Return up to `limit` of the most recent proposals for `topic`."""


class DashboardProposalSource(BaseProposalSource):
    """Reads proposals from the public ICP dashboard REST API."""

    def __init__(
        self,
        api_base: str = "https://ic-api.internetcomputer.org/api/v3",
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch(self, topic: str, limit: int) -> list[Proposal]:
        response = self._session.get(
            f"{self._api_base}/proposals",
            params={"limit": limit, "include_topic": topic},
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        records = response.json().get("data", [])
        logger.info("Fetched %d proposal(s) for %s", len(records), topic)
        return [self._to_proposal(r) for r in records]

    @staticmethod
    def _to_proposal(record: dict) -> Proposal:
        return Proposal(
            id=str(record.get("proposal_id", "")),
            title=record.get("title") or "",
            summary=record.get("summary") or None,
            topic=record.get("topic") or "",
            status=record.get("status") or "",
            timestamp=int(record.get("proposal_timestamp_seconds") or 0),
        )
