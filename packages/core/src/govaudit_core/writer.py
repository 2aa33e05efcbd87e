from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from govaudit_core.models import AuditResult, CommitRange, Proposal, Report, WriteOutcome
from govaudit_store.base import ADMIT_READY
from govaudit_store.codec import encode_payload

if TYPE_CHECKING:
    from govaudit_store.base import BaseReportStorage

logger = logging.getLogger(__name__)


class ReportWriter:
    """Capacity-gated write of one report to the storage front-end.

    No retries here: a rejected or failed write leaves the proposal without a
    stored report, so the dedup gate lets it through again on a later pass.
    """

    def __init__(self, storage: BaseReportStorage):
        self._storage = storage

    def write(self, proposal: Proposal, commit_range: CommitRange, audit: AuditResult) -> WriteOutcome:
        status = self._storage.admit()
        if status != ADMIT_READY:
            logger.error("Storage refused admission for proposal %s (status %d); report not written", proposal.id, status)
            return WriteOutcome(proposal_id=proposal.id, admit_status=status)

        report = Report(proposal=proposal, commit_range=commit_range, audit=audit)
        result = self._storage.save(proposal.id, encode_payload(proposal.title), encode_payload(report.to_dict()))
        outcome = WriteOutcome(proposal_id=proposal.id, admit_status=status, result=result)
        if outcome.written:
            logger.info("Report for proposal %s saved to %s (%d issue(s))", proposal.id, result, len(audit.issues))
        else:
            logger.error("Storage rejected the report for proposal %s", proposal.id)
        return outcome
