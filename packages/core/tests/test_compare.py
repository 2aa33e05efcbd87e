"""Tests for compare-URL construction and diff retrieval."""

from unittest.mock import MagicMock

import pytest

from govaudit_core.gh.compare import DiffFetcher, DiffRetrievalError, compare_url
from govaudit_core.models import CommitRange

RANGE = CommitRange(repository="https://github.com/dfinity/ic", previous_commit="aaa", latest_commit="bbb")
EXPECTED_URL = "https://api.github.com/repos/dfinity/ic/compare/aaa...bbb"


class TestCompareUrl:
    @pytest.mark.parametrize(
        "repository",
        [
            "https://github.com/dfinity/ic",
            "https://github.com/dfinity/ic/",
            "https://github.com/dfinity/ic.git",
            "github.com/dfinity/ic",
            "https://www.github.com/dfinity/ic",
            "https://github.com/dfinity/ic/tree/master",
        ],
    )
    def test_web_url_variants(self, repository):
        assert compare_url(repository, "aaa", "bbb") == EXPECTED_URL

    def test_custom_api_base(self):
        url = compare_url("https://github.com/o/r", "a", "b", api_base="https://ghe.example/api/v3/")
        assert url == "https://ghe.example/api/v3/repos/o/r/compare/a...b"

    @pytest.mark.parametrize(
        "repository",
        ["https://gitlab.com/o/r", "https://github.com/only-owner", "not a url at all", ""],
    )
    def test_rejects_non_github_urls(self, repository):
        with pytest.raises(ValueError):
            compare_url(repository, "a", "b")


def _session(status=200, text="diff --git a/x.rs b/x.rs\n", reason="OK"):
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=status, text=text, reason=reason)
    return session


class TestDiffFetcher:
    def test_requests_raw_diff_media_type(self):
        session = _session()
        DiffFetcher(session=session).fetch_diff(RANGE)
        args, kwargs = session.get.call_args
        assert args[0] == EXPECTED_URL
        assert kwargs["headers"]["Accept"] == "application/vnd.github.v3.diff"
        assert "Authorization" not in kwargs["headers"]

    def test_token_sent_as_bearer(self):
        session = _session()
        DiffFetcher(token="ghp_x", session=session).fetch_diff(RANGE)
        assert session.get.call_args.kwargs["headers"]["Authorization"] == "Bearer ghp_x"

    def test_timeout_passed_through(self):
        session = _session()
        DiffFetcher(timeout=7, session=session).fetch_diff(RANGE)
        assert session.get.call_args.kwargs["timeout"] == 7

    def test_returns_body_text(self):
        session = _session(text="diff --git a/y.go b/y.go\n+x\n")
        assert DiffFetcher(session=session).fetch_diff(RANGE) == "diff --git a/y.go b/y.go\n+x\n"

    def test_empty_diff_is_not_an_error(self):
        assert DiffFetcher(session=_session(text="")).fetch_diff(RANGE) == ""

    @pytest.mark.parametrize("status", [404, 422, 500])
    def test_non_success_status_raises(self, status):
        session = _session(status=status, reason="Nope")
        with pytest.raises(DiffRetrievalError) as exc_info:
            DiffFetcher(session=session).fetch_diff(RANGE)
        assert exc_info.value.status == status
        assert exc_info.value.url == EXPECTED_URL

    def test_invalid_repository_raises_before_request(self):
        session = _session()
        with pytest.raises(ValueError):
            DiffFetcher(session=session).fetch_diff(CommitRange("https://gitlab.com/o/r", "a", "b"))
        session.get.assert_not_called()
