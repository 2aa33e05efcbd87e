"""Pull the repository and commit pair out of a proposal's free-text summary."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from govaudit_core.models import CommitRange
from govaudit_core.utils.tolerant_json import strip_code_fence

if TYPE_CHECKING:
    from govaudit_core.providers.base import BaseModelClient

logger = logging.getLogger(__name__)

_FIELDS = ("repository", "latestCommit", "previousCommit")


def build_extraction_prompt(summary: str) -> str:
    return f"""From the following proposal summary, extract:
- "repository": the full https URL of the source repository the proposal builds from
- "latestCommit": the commit hash the proposal upgrades to
- "previousCommit": the commit hash it upgrades from (the currently deployed version)

Return them as a single JSON object with exactly these three keys:
{{"repository": "<url>", "latestCommit": "<hash>", "previousCommit": "<hash>"}}

Proposal summary:
{summary}

Respond with ONLY the JSON object. Do not wrap it in ```json fences or add any other text."""


class MetadataExtractor:
    def __init__(self, client: BaseModelClient):
        self._client = client

    def extract(self, summary: str) -> CommitRange | None:
        """Return the CommitRange named in summary, or None when the model's answer is unusable."""
        raw = self._client.complete(build_extraction_prompt(summary))
        try:
            data = json.loads(strip_code_fence(raw))
        except json.JSONDecodeError:
            logger.warning("Commit extraction returned non-JSON output: %s", raw[:200])
            return None

        if not isinstance(data, dict):
            logger.warning("Commit extraction returned %s, expected an object", type(data).__name__)
            return None

        values = {}
        for key in _FIELDS:
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                logger.warning("Commit extraction is missing %r: %s", key, raw[:200])
                return None
            values[key] = value.strip()

        return CommitRange(
            repository=values["repository"],
            previous_commit=values["previousCommit"],
            latest_commit=values["latestCommit"],
        )
