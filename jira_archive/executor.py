from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence, TypeVar

from jira_archive.config import MAX_BATCH_SIZE, ArchiveConfig, ExecutorStrategy
from jira_archive.errors import ConfigError
from jira_archive.jira_client import JiraClient
from jira_archive.models import Candidate, Outcome

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def describe_error(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into contiguous chunks of at most ``size``, keeping order."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class TransitionExecutor(Protocol):
    async def execute(self, candidates: Sequence[Candidate]) -> list[Outcome]: ...


class WorkerPoolExecutor:
    """Archive each issue with its own request, ``workers`` requests in flight at most.

    One issue failing never affects another. Outcomes come back in completion
    order, not input order.
    """

    def __init__(self, client: JiraClient, workers: int) -> None:
        if workers < 1:
            raise ConfigError("MAX_WORKERS must be at least 1")
        self.client = client
        self.workers = workers

    async def execute(self, candidates: Sequence[Candidate]) -> list[Outcome]:
        jobs: asyncio.Queue[Candidate] = asyncio.Queue()
        for cand in candidates:
            jobs.put_nowait(cand)
        results: asyncio.Queue[Outcome] = asyncio.Queue()

        LOGGER.info("Starting to archive %d issues with %d workers", len(candidates), self.workers)

        async def worker(worker_id: int) -> None:
            while True:
                try:
                    cand = jobs.get_nowait()
                except asyncio.QueueEmpty:
                    return
                results.put_nowait(await self._archive(worker_id, cand))

        pool = [asyncio.create_task(worker(i + 1)) for i in range(min(self.workers, max(1, len(candidates))))]
        await asyncio.gather(*pool)

        outcomes: list[Outcome] = []
        while not results.empty():
            outcomes.append(results.get_nowait())
        return outcomes

    async def _archive(self, worker_id: int, cand: Candidate) -> Outcome:
        LOGGER.info("[Worker %d] Archiving issue: %s (%s)", worker_id, cand.key, cand.summary)
        try:
            await self.client.archive_one(cand.key)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("[Worker %d] Failed to archive %s: %s", worker_id, cand.key, describe_error(exc))
            return Outcome.failure(cand.key, describe_error(exc))
        LOGGER.info("[Worker %d] Successfully archived %s", worker_id, cand.key)
        return Outcome.success(cand.key)


class BatchExecutor:
    """Archive issues through the bulk endpoint, one batch at a time.

    If a call fails outright every issue in that batch is reported with the
    same error; the batch is not retried or split.
    """

    def __init__(self, client: JiraClient, batch_size: int = MAX_BATCH_SIZE) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ConfigError(f"BATCH_SIZE must be between 1 and {MAX_BATCH_SIZE}")
        self.client = client
        self.batch_size = batch_size

    async def execute(self, candidates: Sequence[Candidate]) -> list[Outcome]:
        batches = partition(candidates, self.batch_size)
        LOGGER.info(
            "Starting to archive %d issues in %d batch(es) of up to %d",
            len(candidates),
            len(batches),
            self.batch_size,
        )

        outcomes: list[Outcome] = []
        for index, batch in enumerate(batches, start=1):
            outcomes.extend(await self._archive_batch(index, len(batches), batch))
        return outcomes

    async def _archive_batch(self, index: int, count: int, batch: list[Candidate]) -> list[Outcome]:
        keys = [cand.key for cand in batch]
        LOGGER.info("[Batch %d/%d] Archiving %d issues (%s .. %s)", index, count, len(keys), keys[0], keys[-1])
        try:
            errors = await self.client.archive_batch(keys)
        except Exception as exc:  # noqa: BLE001
            detail = describe_error(exc)
            LOGGER.warning("[Batch %d/%d] Archive call failed for all %d issues: %s", index, count, len(keys), detail)
            return [Outcome.failure(key, detail) for key in keys]

        outcomes = [Outcome.failure(key, errors[key]) if errors.get(key) else Outcome.success(key) for key in keys]
        failed = sum(1 for o in outcomes if not o.ok)
        LOGGER.info("[Batch %d/%d] Archived %d, failed %d", index, count, len(keys) - failed, failed)
        return outcomes


def build_executor(config: ArchiveConfig, client: JiraClient) -> TransitionExecutor:
    if config.executor is ExecutorStrategy.SEQUENTIAL_BATCH:
        return BatchExecutor(client, config.batch_size)
    return WorkerPoolExecutor(client, config.max_workers)
