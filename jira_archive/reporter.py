from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from jira_archive.models import Candidate, Outcome

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ERROR = 2

NOTHING_TO_ARCHIVE = "No issues to archive."

RULE = "=" * 50


@dataclass
class ArchiveReport:
    total: int = 0
    succeeded: int = 0
    failures: list[Outcome] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def issue_sort_key(key: str) -> tuple[str, int]:
    """Order PROJ-2 before PROJ-10; keys without a numeric suffix sort by text."""
    project, _, number = key.rpartition("-")
    if project and number.isdigit():
        return project, int(number)
    return key, -1


def aggregate(outcomes: Iterable[Outcome]) -> ArchiveReport:
    report = ArchiveReport()
    for outcome in outcomes:
        report.total += 1
        if outcome.ok:
            report.succeeded += 1
        else:
            report.failures.append(outcome)
    report.failures.sort(key=lambda o: issue_sort_key(o.key))
    return report


def build_summary(report: ArchiveReport) -> list[str]:
    lines = ["", RULE, "Archive Summary", RULE]
    for outcome in report.failures:
        lines.append(f"Failed: {outcome.key} - {outcome.error}")
    lines.extend(
        [
            "",
            f"Total issues: {report.total}",
            f"Successfully archived: {report.succeeded}",
            f"Failed: {report.failed}",
            RULE,
        ]
    )
    return lines


def build_dry_run_listing(candidates: list[Candidate]) -> list[str]:
    lines = [f"Dry run: {len(candidates)} issue(s) would be archived"]
    for cand in candidates:
        lines.append(f"  {cand.key}  {cand.summary}".rstrip())
    return lines


def evaluate_exit_code(report: ArchiveReport) -> int:
    return EXIT_FAILURES if report.has_failures else EXIT_OK
