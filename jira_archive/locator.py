from __future__ import annotations

import logging
from typing import Any, Protocol

from jira_archive.errors import ArchiveError, ConfigError, RemoteQueryError
from jira_archive.jira_client import JiraClient
from jira_archive.models import Candidate

LOGGER = logging.getLogger(__name__)


def jql_for(project_key: str, label: str) -> str:
    return f'project = "{project_key}" AND labels = "{label}"'


class Pagination(Protocol):
    name: str

    async def fetch(
        self, client: JiraClient, jql: str, continuation: Any, page_size: int
    ) -> tuple[list[Candidate], Any]:
        """Return one page of records and the continuation for the next page (None when done)."""
        ...


class CursorPagination:
    name = "cursor"

    async def fetch(
        self, client: JiraClient, jql: str, continuation: Any, page_size: int
    ) -> tuple[list[Candidate], Any]:
        page = await client.search(jql, page_size=page_size, next_page_token=continuation)
        return page.records, page.next_page_token


class OffsetPagination:
    name = "offset"

    async def fetch(
        self, client: JiraClient, jql: str, continuation: Any, page_size: int
    ) -> tuple[list[Candidate], Any]:
        start_at = int(continuation or 0)
        page = await client.search_offset(jql, page_size=page_size, start_at=start_at)
        if page.total is None:
            raise RemoteQueryError("offset search response did not include a total")

        # Pages can be short, so advance by what was actually returned.
        fetched = start_at + len(page.records)
        if fetched >= page.total:
            return page.records, None
        if not page.records:
            raise RemoteQueryError(
                f"search returned no records at startAt={start_at} but reported total={page.total}"
            )
        return page.records, fetched


def build_pagination(name: str) -> Pagination:
    if name == CursorPagination.name:
        return CursorPagination()
    if name == OffsetPagination.name:
        return OffsetPagination()
    raise ConfigError(f"unknown pagination mode: {name}")


class IssueLocator:
    def __init__(self, client: JiraClient, pagination: Pagination, *, page_size: int = 100) -> None:
        if page_size < 1:
            raise ConfigError("page size must be at least 1")
        self.client = client
        self.pagination = pagination
        self.page_size = page_size

    async def locate(self, jql: str) -> list[Candidate]:
        """Collect every issue matching ``jql``.

        A failure on any page raises RemoteQueryError and nothing collected so
        far is returned.
        """
        found: list[Candidate] = []
        seen: set[str] = set()
        visited: set[Any] = set()
        continuation: Any = None
        pages = 0

        while True:
            try:
                records, continuation = await self.pagination.fetch(
                    self.client, jql, continuation, self.page_size
                )
            except RemoteQueryError:
                raise
            except ArchiveError as exc:
                raise RemoteQueryError(f"search failed on page {pages + 1}: {exc}") from exc
            pages += 1

            for cand in records:
                if cand.key in seen:
                    LOGGER.warning("Issue %s returned on more than one page; keeping the first", cand.key)
                    continue
                seen.add(cand.key)
                found.append(cand)

            LOGGER.debug("Page %d: %d records (%d collected)", pages, len(records), len(found))
            if continuation is None:
                break
            if continuation in visited:
                raise RemoteQueryError(f"search returned continuation {continuation!r} more than once")
            visited.add(continuation)

        LOGGER.info("Search finished after %d page(s): %d issue(s)", pages, len(found))
        return found
