"""Data carried through the audit pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

SEVERITIES = ("low", "medium", "high")


@dataclass(frozen=True)
class Proposal:
    """A governance proposal as returned by the proposal source."""

    id: str
    title: str
    summary: str | None
    topic: str
    status: str
    timestamp: int


@dataclass(frozen=True)
class CommitRange:
    repository: str
    previous_commit: str
    latest_commit: str


@dataclass(frozen=True)
class DiffChunk:
    index: int
    text: str
    token_count: int


@dataclass
class Issue:
    line: int
    severity: str  # "low" | "medium" | "high"
    file: str
    issue: str

    def to_dict(self) -> dict:
        return {"line": self.line, "severity": self.severity, "file": self.file, "issue": self.issue}


@dataclass
class AuditResult:
    issues: list[Issue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"issues": [i.to_dict() for i in self.issues]}


@dataclass
class Report:
    """The record persisted for one audited proposal."""

    proposal: Proposal
    commit_range: CommitRange
    audit: AuditResult

    def to_dict(self) -> dict:
        p = self.proposal
        return {
            "id": p.id,
            "title": p.title,
            "summary": p.summary,
            "topic": p.topic,
            "status": p.status,
            "timestamp": str(p.timestamp),
            "repository": self.commit_range.repository,
            "latestCommit": self.commit_range.latest_commit,
            "previousCommit": self.commit_range.previous_commit,
            "audit": self.audit.to_dict(),
        }


@dataclass
class WriteOutcome:
    proposal_id: str
    admit_status: int
    result: str | None = None  # storage-assigned shard id; None = not written

    @property
    def status(self) -> str:
        if self.admit_status != 0:
            return "capacity_rejected"
        return "written" if self.result is not None else "rejected"

    @property
    def written(self) -> bool:
        return self.status == "written"
