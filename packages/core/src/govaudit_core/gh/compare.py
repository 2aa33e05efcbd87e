from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

from govaudit_core.models import CommitRange

logger = logging.getLogger(__name__)

_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
_GITHUB_HOSTS = {"github.com", "www.github.com"}


class DiffRetrievalError(Exception):
    """The compare endpoint answered with a non-success status."""

    def __init__(self, status: int, reason: str, url: str):
        super().__init__(f"Diff retrieval failed ({status} {reason}) for {url}")
        self.status = status
        self.reason = reason
        self.url = url


def compare_url(repository: str, previous_commit: str, latest_commit: str, api_base: str = "https://api.github.com") -> str:
    """Rewrite a repository web URL into its compare API endpoint.

    "https://github.com/org/repo.git" → "{api_base}/repos/org/repo/compare/{previous}...{latest}"
    """
    url = repository.strip()
    if "://" not in url:
        url = "https://" + url
    parsed = urlparse(url)
    path = parsed.path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    parts = path.split("/")
    if parsed.netloc.lower() not in _GITHUB_HOSTS or len(parts) < 2 or not all(parts[:2]):
        raise ValueError(f"Not a GitHub repository URL: {repository!r}")
    owner, repo = parts[0], parts[1]
    return f"{api_base.rstrip('/')}/repos/{owner}/{repo}/compare/{previous_commit}...{latest_commit}"


class DiffFetcher:
    def __init__(
        self,
        token: str | None = None,
        api_base: str = "https://api.github.com",
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self._token = token
        self._api_base = api_base
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch_diff(self, commit_range: CommitRange) -> str:
        url = compare_url(
            commit_range.repository,
            commit_range.previous_commit,
            commit_range.latest_commit,
            api_base=self._api_base,
        )
        headers = {"Accept": _DIFF_MEDIA_TYPE}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        logger.debug("Fetching diff: %s", url)
        response = self._session.get(url, headers=headers, timeout=self._timeout)
        if not 200 <= response.status_code < 300:
            raise DiffRetrievalError(response.status_code, response.reason or "", url)
        return response.text
