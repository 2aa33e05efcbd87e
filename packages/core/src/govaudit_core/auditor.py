"""Chunked LLM audit of a diff.

Each chunk is audited on its own, with no context carried between chunks,
and the per-chunk issue lists are concatenated in chunk order. A chunk whose
response cannot be parsed contributes nothing; the audit carries on.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import TYPE_CHECKING

from govaudit_core.models import SEVERITIES, AuditResult, Issue
from govaudit_core.utils import tolerant_json

if TYPE_CHECKING:
    from govaudit_core.diff.chunker import DiffChunker
    from govaudit_core.providers.base import BaseModelClient

logger = logging.getLogger(__name__)

_PLACEHOLDER_FILE = "path/to/file"
_DELETED_FILE = "/dev/null"
_SIDE_PREFIX_RE = re.compile(r"^[ab]/")
# Checked after the a/ or b/ prefix is removed, so "a/dev/null" becomes "dev/null".
_IGNORED_FILES = {"", _PLACEHOLDER_FILE, _DELETED_FILE, _DELETED_FILE.lstrip("/")}


def build_audit_prompt(chunk_text: str) -> str:
    return f"""You are a security auditor reviewing part of a source-code diff.
Identify security vulnerabilities, unsafe patterns, and significant quality problems
introduced by the changes below (lines starting with '+'), and risky removals
(lines starting with '-').

## Diff
{chunk_text}

### Output Format:
Respond with exactly one JSON object and nothing else:

{{
  "issues": [
    {{
      "line": <line number in the new file (integer)>,
      "severity": "<low|medium|high>",
      "file": "path/to/file",
      "issue": "<concise description of the problem>"
    }}
  ]
}}

Use the file path shown in the diff header. If there are no issues, return: {{"issues": []}}
Do not use markdown code fences. Do not add commentary before or after the JSON."""


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def normalize_issues(items: list) -> list[Issue]:
    """Turn raw issue dicts into Issues, dropping placeholder and deleted-file entries."""
    issues = []
    for item in items:
        if not isinstance(item, dict):
            continue
        file = _SIDE_PREFIX_RE.sub("", str(item.get("file") or "").strip())
        if file in _IGNORED_FILES:
            continue
        severity = str(item.get("severity") or "").strip().lower()
        if severity not in SEVERITIES:
            severity = "low"
        issues.append(
            Issue(
                line=_to_int(item.get("line")),
                severity=severity,
                file=file,
                issue=str(item.get("issue") or ""),
            )
        )
    return issues


class ChunkAuditor:
    def __init__(
        self,
        client: BaseModelClient,
        chunker: DiffChunker,
        max_chunks: int | None = None,
        cooldown_seconds: float = 5.0,
    ):
        self._client = client
        self._chunker = chunker
        self._max_chunks = max_chunks
        self._cooldown_seconds = cooldown_seconds

    def audit(self, diff_text: str) -> AuditResult:
        result = AuditResult()
        for chunk in self._chunker.chunks(diff_text):
            if self._max_chunks is not None and chunk.index >= self._max_chunks:
                logger.info("Chunk limit (%d) reached; remaining diff not audited", self._max_chunks)
                break
            if chunk.index > 0 and self._cooldown_seconds:
                time.sleep(self._cooldown_seconds)

            raw = self._client.complete(build_audit_prompt(chunk.text))
            items = self._parse(raw, chunk.index)
            if items is None:
                continue
            issues = normalize_issues(items)
            logger.info("Chunk %d (%d tokens): %d issue(s)", chunk.index, chunk.token_count, len(issues))
            result.issues.extend(issues)
        return result

    def _parse(self, raw: str, index: int) -> list | None:
        try:
            data = tolerant_json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Chunk %d: could not parse audit response: %s", index, raw[:200])
            return None
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("issues"), list):
            return data["issues"]
        logger.warning("Chunk %d: audit response has no issues list: %s", index, raw[:200])
        return None
