from __future__ import annotations

import logging
from typing import Any

import httpx

from jira_archive.errors import IssueArchiveRejected
from jira_archive.http_utils import DEFAULT_HEADERS, decode_json, send
from jira_archive.models import Candidate, SearchPage

LOGGER = logging.getLogger(__name__)

SEARCH_FIELDS = "summary"
ARCHIVE_OK_STATUSES = frozenset({200, 204})


def build_http_client(base_url: str, email: str, api_token: str, *, timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        auth=(email, api_token),
        headers=DEFAULT_HEADERS,
        timeout=timeout,
    )


def _parse_issue(item: dict[str, Any]) -> Candidate | None:
    key = item.get("key")
    if not isinstance(key, str) or not key:
        return None
    raw_id = item.get("id")
    try:
        issue_id = int(raw_id) if raw_id is not None else None
    except (TypeError, ValueError):
        issue_id = None
    fields = item.get("fields") or {}
    summary = fields.get("summary") if isinstance(fields, dict) else None
    return Candidate(key=key, issue_id=issue_id, summary=summary if isinstance(summary, str) else "")


def _parse_search(data: Any) -> SearchPage:
    if not isinstance(data, dict):
        data = {}
    records: list[Candidate] = []
    for item in data.get("issues") or []:
        if not isinstance(item, dict):
            continue
        cand = _parse_issue(item)
        if cand is None:
            LOGGER.warning("Skipping search result without a key: %r", item)
            continue
        records.append(cand)

    token = data.get("nextPageToken")
    total = data.get("total")
    return SearchPage(
        records=records,
        next_page_token=token if isinstance(token, str) and token else None,
        total=total if isinstance(total, int) else None,
    )


def parse_archive_errors(data: Any) -> dict[str, str]:
    """Flatten the ``errors`` member of an archive response into ``{key: message}``.

    Two shapes are accepted::

        {"errors": {"PROJ-1": "Issue is already archived"}}
        {"errors": {"issueIsSubtask": {"issueIdsOrKeys": ["PROJ-1"], "message": "..."}}}
    """
    if not isinstance(data, dict):
        return {}
    errors = data.get("errors") or {}
    if not isinstance(errors, dict):
        return {}

    flat: dict[str, str] = {}
    for name, value in errors.items():
        if isinstance(value, str):
            if value:
                flat[str(name)] = value
        elif isinstance(value, dict):
            message = value.get("message") or str(name)
            for key in value.get("issueIdsOrKeys") or []:
                flat[str(key)] = str(message)
    return flat


class JiraClient:
    """The two Jira Cloud RPCs the archive run needs: issue search and archive."""

    search_path = "/rest/api/3/search/jql"
    search_offset_path = "/rest/api/3/search"
    archive_path = "/rest/api/3/issue/archive"

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def search(self, jql: str, *, page_size: int, next_page_token: str | None = None) -> SearchPage:
        params: dict[str, Any] = {"jql": jql, "maxResults": page_size, "fields": SEARCH_FIELDS}
        if next_page_token:
            params["nextPageToken"] = next_page_token
        LOGGER.debug("GET %s params=%s", self.search_path, params)
        resp = await send(self.http, "GET", self.search_path, params=params)
        return _parse_search(decode_json(resp))

    async def search_offset(self, jql: str, *, page_size: int, start_at: int = 0) -> SearchPage:
        params = {"jql": jql, "maxResults": page_size, "startAt": start_at, "fields": SEARCH_FIELDS}
        LOGGER.debug("GET %s params=%s", self.search_offset_path, params)
        resp = await send(self.http, "GET", self.search_offset_path, params=params)
        return _parse_search(decode_json(resp))

    async def archive_batch(self, keys: list[str]) -> dict[str, str]:
        """Archive ``keys`` in one call and return the per-key error map."""
        resp = await send(
            self.http,
            "PUT",
            self.archive_path,
            json={"issueIdsOrKeys": list(keys)},
            ok_statuses=ARCHIVE_OK_STATUSES,
        )
        return parse_archive_errors(decode_json(resp))

    async def archive_one(self, key: str) -> None:
        errors = await self.archive_batch([key])
        message = errors.get(key)
        if message:
            raise IssueArchiveRejected(key, message)
