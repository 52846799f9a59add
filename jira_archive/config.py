from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from jira_archive.errors import ConfigError

DEFAULT_LABEL = "archive"
DEFAULT_MAX_WORKERS = 5
DEFAULT_PAGE_SIZE = 100  # Jira's recommended search page size
DEFAULT_REQUEST_TIMEOUT = 30.0

# The bulk archive endpoint accepts at most 1000 keys per call.
MAX_BATCH_SIZE = 1000

PAGINATION_MODES = ("cursor", "offset")


class ExecutorStrategy(str, Enum):
    WORKER_POOL = "worker_pool"
    SEQUENTIAL_BATCH = "batch"


@dataclass
class ArchiveConfig:
    base_url: str
    email: str
    api_token: str
    project_key: str
    label: str = DEFAULT_LABEL

    executor: ExecutorStrategy = ExecutorStrategy.WORKER_POOL
    max_workers: int = DEFAULT_MAX_WORKERS
    batch_size: int = MAX_BATCH_SIZE

    pagination: str = "cursor"
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def describe(self) -> list[str]:
        lines = [
            f"JIRA Base URL: {self.base_url}",
            f"Project Key: {self.project_key}",
            f"Archive Label: {self.label}",
            f"Strategy: {self.executor.value}",
        ]
        if self.executor is ExecutorStrategy.WORKER_POOL:
            lines.append(f"Max Workers: {self.max_workers}")
        else:
            lines.append(f"Batch Size: {self.batch_size}")
        lines.append(f"Pagination: {self.pagination} (page size {self.page_size})")
        return lines


def _required(environ: Mapping[str, str], name: str) -> str:
    value = (environ.get(name) or "").strip()
    if not value:
        raise ConfigError(f"{name} is required")
    return value


def _int_setting(environ: Mapping[str, str], name: str, default: int, *, minimum: int, maximum: int | None = None) -> int:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be at most {maximum}")
    return value


def _float_setting(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be greater than 0")
    return value


def _strategy(environ: Mapping[str, str]) -> ExecutorStrategy:
    raw = (environ.get("ARCHIVE_STRATEGY") or "").strip().lower()
    if not raw:
        return ExecutorStrategy.WORKER_POOL
    try:
        return ExecutorStrategy(raw)
    except ValueError:
        allowed = ",".join(s.value for s in ExecutorStrategy)
        raise ConfigError(f"ARCHIVE_STRATEGY must be one of {allowed}, got {raw!r}") from None


def load_config(environ: Mapping[str, str] | None = None) -> ArchiveConfig:
    """Build an :class:`ArchiveConfig` from environment variables.

    Concurrency and batching are mutually exclusive. Setting MAX_WORKERS in
    batch mode, or BATCH_SIZE in worker_pool mode, raises ConfigError.
    """

    env = os.environ if environ is None else environ

    base_url = _required(env, "JIRA_BASE_URL").rstrip("/")
    email = _required(env, "JIRA_EMAIL")
    api_token = _required(env, "JIRA_API_TOKEN")
    project_key = _required(env, "JIRA_PROJECT_KEY")
    label = (env.get("ARCHIVE_LABEL") or "").strip() or DEFAULT_LABEL

    strategy = _strategy(env)
    workers_set = bool((env.get("MAX_WORKERS") or "").strip())
    batch_set = bool((env.get("BATCH_SIZE") or "").strip())
    if strategy is ExecutorStrategy.SEQUENTIAL_BATCH and workers_set:
        raise ConfigError("MAX_WORKERS is only used with ARCHIVE_STRATEGY=worker_pool; unset it for batch mode")
    if strategy is ExecutorStrategy.WORKER_POOL and batch_set:
        raise ConfigError("BATCH_SIZE is only used with ARCHIVE_STRATEGY=batch; unset it for worker_pool mode")

    max_workers = _int_setting(env, "MAX_WORKERS", DEFAULT_MAX_WORKERS, minimum=1)
    batch_size = _int_setting(env, "BATCH_SIZE", MAX_BATCH_SIZE, minimum=1, maximum=MAX_BATCH_SIZE)

    pagination = (env.get("PAGINATION") or "").strip().lower() or "cursor"
    if pagination not in PAGINATION_MODES:
        raise ConfigError(f"PAGINATION must be one of {','.join(PAGINATION_MODES)}, got {pagination!r}")

    return ArchiveConfig(
        base_url=base_url,
        email=email,
        api_token=api_token,
        project_key=project_key,
        label=label,
        executor=strategy,
        max_workers=max_workers,
        batch_size=batch_size,
        pagination=pagination,
        page_size=_int_setting(env, "PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1),
        request_timeout=_float_setting(env, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
    )
