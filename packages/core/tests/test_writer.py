"""Tests for the capacity-gated report writer."""

from unittest.mock import MagicMock

import pytest

from govaudit_core.models import AuditResult, CommitRange, Issue, Proposal
from govaudit_core.writer import ReportWriter
from govaudit_store.base import ADMIT_CAPACITY_EXHAUSTED, ADMIT_READY
from govaudit_store.codec import decode_payload

PROPOSAL = Proposal(
    id="131000",
    title="Elect new IC/Replica revision",
    summary="…",
    topic="TOPIC_IC_OS_VERSION_ELECTION",
    status="OPEN",
    timestamp=1717000000,
)
RANGE = CommitRange("https://github.com/dfinity/ic", "aaa", "bbb")
AUDIT = AuditResult([Issue(line=3, severity="high", file="rs/lib.rs", issue="Unchecked index")])


@pytest.fixture
def storage():
    storage = MagicMock()
    storage.admit.return_value = ADMIT_READY
    storage.save.return_value = "shard-1"
    return storage


def test_capacity_exhausted_skips_save(storage):
    storage.admit.return_value = ADMIT_CAPACITY_EXHAUSTED
    outcome = ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
    storage.save.assert_not_called()
    assert outcome.status == "capacity_rejected"
    assert outcome.written is False


def test_written_outcome_carries_shard(storage):
    outcome = ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
    assert outcome.status == "written"
    assert outcome.result == "shard-1"


def test_admit_called_before_save(storage):
    ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
    assert [c[0] for c in storage.method_calls] == ["admit", "save"]


def test_payloads_are_encoded(storage):
    ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
    proposal_id, title, report = storage.save.call_args.args
    assert proposal_id == "131000"
    assert decode_payload(title) == "Elect new IC/Replica revision"
    assert decode_payload(report) == {
        "id": "131000",
        "title": "Elect new IC/Replica revision",
        "summary": "…",
        "topic": "TOPIC_IC_OS_VERSION_ELECTION",
        "status": "OPEN",
        "timestamp": "1717000000",
        "repository": "https://github.com/dfinity/ic",
        "latestCommit": "bbb",
        "previousCommit": "aaa",
        "audit": {"issues": [{"line": 3, "severity": "high", "file": "rs/lib.rs", "issue": "Unchecked index"}]},
    }


def test_save_returning_none_is_rejected(storage):
    storage.save.return_value = None
    outcome = ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
    assert outcome.status == "rejected"


def test_save_error_propagates(storage):
    storage.save.side_effect = ConnectionError("front-end down")
    with pytest.raises(ConnectionError):
        ReportWriter(storage).write(PROPOSAL, RANGE, AUDIT)
