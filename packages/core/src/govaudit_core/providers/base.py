"""Base model client with throttling recovery.

All providers share the same call algorithm:
    complete() → _call_api()   ← only this differs per provider
               ↳ on a throttling error: sleep for the provider's hint, retry

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

This is the only place provider throttling is absorbed. Every other error
propagates to the caller unchanged on the first failure.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_MAX_RETRIES = 5
_MAX_TOKENS = 4096

# Matches hints such as "Please retry after 20 seconds" or "try again in 6.5s".
_RETRY_AFTER_RE = re.compile(
    r"(?:retry after|try again in)\s+(\d+(?:\.\d+)?)\s*(?:s\b|sec\b|secs\b|seconds?\b)",
    re.IGNORECASE,
)


def parse_retry_after(error: BaseException) -> float | None:
    """Return the wait in seconds embedded in a throttling error's message, or None."""
    match = _RETRY_AFTER_RE.search(str(error))
    if match is None:
        return None
    return float(match.group(1))


class BaseModelClient(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, model: str | None = None, max_retries: int = _MAX_RETRIES):
        self.model = model or self.MODEL
        self.max_retries = max_retries

    def complete(self, prompt: str) -> str:
        """Send one prompt and return the model's text, waiting out throttling.

        At most max_retries + 1 calls are made. When the budget is exhausted,
        or the error carries no retry hint, the original exception is re-raised.
        """
        retries = 0
        while True:
            try:
                return self._call_api(prompt)
            except Exception as e:
                wait = parse_retry_after(e)
                if wait is None or retries >= self.max_retries:
                    raise
                retries += 1
                logger.warning(
                    "%s throttled (retry %d/%d). Waiting %.1fs as requested...",
                    self.__class__.__name__,
                    retries,
                    self.max_retries,
                    wait,
                )
                time.sleep(wait)

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Should raise on failure; complete() decides whether to retry.
        """
