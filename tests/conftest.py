from __future__ import annotations

import pytest

from jira_archive.config import ArchiveConfig

BASE_URL = "https://example.atlassian.net"


def make_issue(n: int, project: str = "PROJ") -> dict:
    return {"id": str(10000 + n), "key": f"{project}-{n}", "fields": {"summary": f"Issue number {n}"}}


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def config() -> ArchiveConfig:
    return ArchiveConfig(
        base_url=BASE_URL,
        email="bot@example.com",
        api_token="secret-token",
        project_key="PROJ",
        label="archive",
    )


@pytest.fixture
def jira_env(monkeypatch) -> dict[str, str]:
    """Required settings in the process environment, optional ones cleared."""
    env = {
        "JIRA_BASE_URL": BASE_URL + "/",
        "JIRA_EMAIL": "bot@example.com",
        "JIRA_API_TOKEN": "secret-token",
        "JIRA_PROJECT_KEY": "PROJ",
    }
    for name in (
        "ARCHIVE_LABEL",
        "ARCHIVE_STRATEGY",
        "MAX_WORKERS",
        "BATCH_SIZE",
        "PAGINATION",
        "PAGE_SIZE",
        "REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return env
