"""Tests for the Jira REST boundary.

``respx`` patches ``httpx`` at the transport layer so no real network calls
are made.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx

from jira_archive.errors import IssueArchiveRejected, JiraAPIError, JiraTransportError
from jira_archive.jira_client import JiraClient, build_http_client, parse_archive_errors

from conftest import BASE_URL, make_issue


def _run(coro_fn):
    async def wrapper():
        async with build_http_client(BASE_URL, "bot@example.com", "secret-token", timeout=5.0) as http:
            return await coro_fn(JiraClient(http))

    return asyncio.run(wrapper())


class TestSearch:
    def test_search_decodes_issues_and_token(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(
                return_value=httpx.Response(
                    200, json={"issues": [make_issue(1), make_issue(2)], "nextPageToken": "abc"}
                )
            )
            page = _run(lambda c: c.search('project = "PROJ"', page_size=100))

        assert [c.key for c in page.records] == ["PROJ-1", "PROJ-2"]
        assert page.records[0].issue_id == 10001
        assert page.records[0].summary == "Issue number 1"
        assert page.next_page_token == "abc"

        request = route.calls.last.request
        assert request.url.params["maxResults"] == "100"
        assert request.url.params["fields"] == "summary"
        assert "nextPageToken" not in request.url.params
        assert request.headers["Authorization"].startswith("Basic ")

    def test_search_forwards_token(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(
                return_value=httpx.Response(200, json={"issues": []})
            )
            page = _run(lambda c: c.search("x", page_size=10, next_page_token="opaque=="))

        assert route.calls.last.request.url.params["nextPageToken"] == "opaque=="
        assert page.next_page_token is None
        assert page.records == []

    def test_search_offset_reports_total(self) -> None:
        with respx.mock:
            route = respx.get(f"{BASE_URL}/rest/api/3/search").mock(
                return_value=httpx.Response(200, json={"issues": [make_issue(3)], "total": 7, "startAt": 2})
            )
            page = _run(lambda c: c.search_offset("x", page_size=50, start_at=2))

        assert route.calls.last.request.url.params["startAt"] == "2"
        assert page.total == 7

    def test_issue_without_key_is_skipped(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(
                return_value=httpx.Response(200, json={"issues": [{"id": "1"}, make_issue(4)]})
            )
            page = _run(lambda c: c.search("x", page_size=10))

        assert [c.key for c in page.records] == ["PROJ-4"]

    def test_non_200_surfaces_status_and_body(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(
                return_value=httpx.Response(400, text='{"errorMessages":["bad jql"]}')
            )
            with pytest.raises(JiraAPIError) as info:
                _run(lambda c: c.search("x", page_size=10))

        assert info.value.status_code == 400
        assert "bad jql" in info.value.body
        assert "status 400" in str(info.value)

    def test_timeout_is_a_transport_error(self) -> None:
        with respx.mock:
            respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(side_effect=httpx.ReadTimeout)
            with pytest.raises(JiraTransportError, match="timed out"):
                _run(lambda c: c.search("x", page_size=10))

    def test_undecodable_body_is_a_transport_error(self) -> None:
        garbled = httpx.Response(
            200,
            stream=httpx.ByteStream(b"plainly not gzip"),
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        )
        with respx.mock:
            respx.get(f"{BASE_URL}/rest/api/3/search/jql").mock(return_value=garbled)
            with pytest.raises(JiraTransportError, match="DecodingError"):
                _run(lambda c: c.search("x", page_size=10))


class TestArchive:
    def test_batch_sends_keys_and_accepts_204(self) -> None:
        with respx.mock:
            route = respx.put(f"{BASE_URL}/rest/api/3/issue/archive").mock(return_value=httpx.Response(204))
            errors = _run(lambda c: c.archive_batch(["PROJ-1", "PROJ-2"]))

        assert errors == {}
        assert json.loads(route.calls.last.request.content) == {"issueIdsOrKeys": ["PROJ-1", "PROJ-2"]}

    def test_batch_returns_per_key_errors(self) -> None:
        with respx.mock:
            respx.put(f"{BASE_URL}/rest/api/3/issue/archive").mock(
                return_value=httpx.Response(200, json={"errors": {"PROJ-2": "Issue is already archived"}})
            )
            errors = _run(lambda c: c.archive_batch(["PROJ-1", "PROJ-2"]))

        assert errors == {"PROJ-2": "Issue is already archived"}

    def test_batch_server_error(self) -> None:
        with respx.mock:
            respx.put(f"{BASE_URL}/rest/api/3/issue/archive").mock(return_value=httpx.Response(503, text="down"))
            with pytest.raises(JiraAPIError, match="status 503: down"):
                _run(lambda c: c.archive_batch(["PROJ-1"]))

    def test_archive_one_raises_on_per_key_error(self) -> None:
        with respx.mock:
            respx.put(f"{BASE_URL}/rest/api/3/issue/archive").mock(
                return_value=httpx.Response(200, json={"errors": {"PROJ-9": "Issue is already archived"}})
            )
            with pytest.raises(IssueArchiveRejected, match="PROJ-9: Issue is already archived"):
                _run(lambda c: c.archive_one("PROJ-9"))

    def test_archive_one_success(self) -> None:
        with respx.mock:
            respx.put(f"{BASE_URL}/rest/api/3/issue/archive").mock(
                return_value=httpx.Response(200, json={"numberOfIssuesUpdated": 1})
            )
            assert _run(lambda c: c.archive_one("PROJ-9")) is None


class TestParseArchiveErrors:
    def test_flat_shape(self) -> None:
        assert parse_archive_errors({"errors": {"A-1": "nope", "A-2": ""}}) == {"A-1": "nope"}

    def test_grouped_shape(self) -> None:
        data = {
            "errors": {
                "issueIsSubtask": {"count": 2, "issueIdsOrKeys": ["A-1", "A-2"], "message": "Subtasks cannot be archived"}
            }
        }
        assert parse_archive_errors(data) == {
            "A-1": "Subtasks cannot be archived",
            "A-2": "Subtasks cannot be archived",
        }

    def test_missing_or_empty(self) -> None:
        assert parse_archive_errors(None) == {}
        assert parse_archive_errors({}) == {}
        assert parse_archive_errors({"errors": None}) == {}
