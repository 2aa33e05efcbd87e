"""Core audit orchestration: proposal list in, stored reports out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from govaudit_core.auditor import ChunkAuditor
from govaudit_core.dedup import DedupGate
from govaudit_core.diff.chunker import DiffChunker
from govaudit_core.extractor import MetadataExtractor
from govaudit_core.gh.compare import DiffFetcher
from govaudit_core.models import CommitRange, Issue, Proposal
from govaudit_core.providers.anthropic import AnthropicClient
from govaudit_core.providers.openai import OpenAIClient
from govaudit_core.writer import ReportWriter

if TYPE_CHECKING:
    from govaudit_core.providers.base import BaseModelClient
    from govaudit_store.base import BaseReportStorage, BaseShard

logger = logging.getLogger(__name__)


@dataclass
class ProposalOutcome:
    """What happened to one proposal during a pass.

    status is one of: already_reported, no_summary, no_commit_range,
    audited (shadow run, nothing persisted), written, capacity_rejected,
    rejected, failed.
    """

    proposal_id: str
    title: str
    status: str
    commit_range: CommitRange | None = None
    issues: list[Issue] = field(default_factory=list)
    shard: str | None = None
    error: str | None = None


@dataclass
class PassSummary:
    outcomes: list[ProposalOutcome] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)


def get_client(config: dict) -> BaseModelClient:
    model = config["model"]
    max_retries = config.get("max_retries", 5)
    if model == "openai":
        return OpenAIClient(api_key=config["openai_api_key"], model=config.get("model_name"), max_retries=max_retries)
    if model == "anthropic":
        return AnthropicClient(
            api_key=config["anthropic_api_key"], model=config.get("model_name"), max_retries=max_retries
        )
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'openai' or 'anthropic'.")


class AuditPipeline:
    """Runs the dedup → extract → fetch → audit → write sequence per proposal.

    Proposals are handled strictly one at a time. An error inside one
    proposal is logged and recorded as a `failed` outcome; an error while
    discovering shards at the start of a pass aborts it. When a write lands
    on a shard the pass has not seen yet, shards are listed again so later
    dedup lookups cover it.

    With no writer (shadow mode) reports are audited but never persisted.
    """

    def __init__(
        self,
        storage: BaseReportStorage,
        extractor: MetadataExtractor,
        fetcher: DiffFetcher,
        auditor: ChunkAuditor,
        writer: ReportWriter | None = None,
        gate: DedupGate | None = None,
    ):
        self._storage = storage
        self._extractor = extractor
        self._fetcher = fetcher
        self._auditor = auditor
        self._writer = writer
        self._gate = gate or DedupGate(storage)

    def run(self, proposals: Iterable[Proposal], cancelled: Callable[[], bool] | None = None) -> PassSummary:
        summary = PassSummary()
        shards = self._storage.list_shards()
        for proposal in proposals:
            if cancelled is not None and cancelled():
                logger.info("Pass cancelled; %d proposal(s) handled", len(summary.outcomes))
                break
            outcome = self._process_safely(proposal, shards)
            summary.outcomes.append(outcome)
            if outcome.shard is not None and outcome.shard not in {s.shard_id for s in shards}:
                shards = self._refresh_shards(shards)
        logger.info(
            "Pass complete: %d proposal(s), %d written, %d already reported, %d failed",
            len(summary.outcomes),
            summary.count("written"),
            summary.count("already_reported"),
            summary.count("failed"),
        )
        return summary

    def _refresh_shards(self, known: Sequence[BaseShard]) -> Sequence[BaseShard]:
        """Re-list shards after a write landed on one created during this pass."""
        try:
            return self._storage.list_shards()
        except Exception as e:
            logger.warning("Shard re-discovery failed; keeping %d known shard(s): %s", len(known), e)
            return known

    def _process_safely(self, proposal: Proposal, shards: Sequence[BaseShard]) -> ProposalOutcome:
        try:
            return self.process(proposal, shards)
        except Exception as e:
            logger.error("Proposal %s (%s) failed: %s", proposal.id, proposal.title, e, exc_info=True)
            return ProposalOutcome(proposal.id, proposal.title, "failed", error=f"{type(e).__name__}: {e}")

    def process(self, proposal: Proposal, shards: Sequence[BaseShard] | None = None) -> ProposalOutcome:
        if not proposal.summary:
            logger.debug("Proposal %s has no summary; skipping", proposal.id)
            return ProposalOutcome(proposal.id, proposal.title, "no_summary")

        if self._gate.already_reported(proposal.id, shards):
            logger.debug("Proposal %s already reported; skipping", proposal.id)
            return ProposalOutcome(proposal.id, proposal.title, "already_reported")

        commit_range = self._extractor.extract(proposal.summary)
        if commit_range is None:
            logger.info("Proposal %s: no commit range found in summary; skipping", proposal.id)
            return ProposalOutcome(proposal.id, proposal.title, "no_commit_range")

        logger.info(
            "Proposal %s %r: %s %s...%s",
            proposal.id,
            proposal.title,
            commit_range.repository,
            commit_range.previous_commit[:12],
            commit_range.latest_commit[:12],
        )
        diff_text = self._fetcher.fetch_diff(commit_range)
        audit = self._auditor.audit(diff_text)

        if self._writer is None:
            return ProposalOutcome(proposal.id, proposal.title, "audited", commit_range, audit.issues)

        outcome = self._writer.write(proposal, commit_range, audit)
        return ProposalOutcome(
            proposal.id,
            proposal.title,
            outcome.status,
            commit_range,
            audit.issues,
            shard=outcome.result,
        )


def build_pipeline(config: dict, storage: BaseReportStorage, shadow: bool = False) -> AuditPipeline:
    """Wire a pipeline from a loaded config dict."""
    client = get_client(config)
    chunker = DiffChunker(
        max_tokens_per_chunk=config.get("max_tokens_per_chunk", 3000),
        model=client.model,
        extensions=config.get("code_extensions"),
        exclude=config.get("exclude", []),
    )
    auditor = ChunkAuditor(
        client,
        chunker,
        max_chunks=config.get("max_chunks"),
        cooldown_seconds=config.get("chunk_cooldown_seconds", 5),
    )
    fetcher = DiffFetcher(
        token=config.get("github_token"),
        api_base=config.get("github_api_base", "https://api.github.com"),
        timeout=config.get("http_timeout_seconds", 30),
    )
    return AuditPipeline(
        storage=storage,
        extractor=MetadataExtractor(client),
        fetcher=fetcher,
        auditor=auditor,
        writer=None if shadow else ReportWriter(storage),
    )
