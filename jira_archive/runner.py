from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from jira_archive.config import ArchiveConfig
from jira_archive.errors import RemoteQueryError
from jira_archive.executor import build_executor
from jira_archive.jira_client import JiraClient, build_http_client
from jira_archive.locator import IssueLocator, build_pagination, jql_for
from jira_archive.reporter import (
    EXIT_ERROR,
    EXIT_OK,
    NOTHING_TO_ARCHIVE,
    ArchiveReport,
    aggregate,
    build_dry_run_listing,
    build_summary,
    evaluate_exit_code,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class RunResult:
    located: int
    report: ArchiveReport | None = None
    dry_run: bool = False

    @property
    def nothing_to_do(self) -> bool:
        return self.located == 0

    @property
    def exit_code(self) -> int:
        if self.report is None:
            return EXIT_OK
        return evaluate_exit_code(self.report)


async def run_once(config: ArchiveConfig, *, dry_run: bool = False) -> RunResult:
    jql = jql_for(config.project_key, config.label)

    async with build_http_client(
        config.base_url, config.email, config.api_token, timeout=config.request_timeout
    ) as http:
        client = JiraClient(http)
        locator = IssueLocator(client, build_pagination(config.pagination), page_size=config.page_size)

        print(f"[Archiver] Searching for issues with label '{config.label}' in project '{config.project_key}'...")
        candidates = await locator.locate(jql)
        print(f"[Archiver] Found {len(candidates)} issues to archive")

        if not candidates:
            print(NOTHING_TO_ARCHIVE)
            return RunResult(located=0, dry_run=dry_run)

        if dry_run:
            print("\n".join(build_dry_run_listing(candidates)))
            return RunResult(located=len(candidates), dry_run=True)

        executor = build_executor(config, client)
        outcomes = await executor.execute(candidates)

    report = aggregate(outcomes)
    print("\n".join(build_summary(report)))
    return RunResult(located=len(candidates), report=report)


def run_sync(config: ArchiveConfig, *, dry_run: bool = False) -> int:
    for line in config.describe():
        LOGGER.info(line)
    try:
        result = asyncio.run(run_once(config, dry_run=dry_run))
    except RemoteQueryError as exc:
        LOGGER.error("Failed to search for issues: %s", exc)
        print(f"[Archiver] Fatal error: {exc}")
        return EXIT_ERROR
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Archive run aborted")
        print(f"[Archiver] Fatal error: {type(exc).__name__}: {exc}")
        return EXIT_ERROR

    code = result.exit_code
    if result.report is not None and result.report.has_failures:
        print("[Archiver] Completed with errors")
    elif result.report is not None:
        print("[Archiver] All issues archived successfully!")
    return code
