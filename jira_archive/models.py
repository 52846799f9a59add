from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Candidate:
    key: str
    issue_id: int | None = None
    summary: str = ""


@dataclass(frozen=True, slots=True)
class Outcome:
    key: str
    ok: bool
    error: str | None = None

    def __post_init__(self) -> None:
        if self.ok and self.error is not None:
            raise ValueError(f"successful outcome for {self.key} cannot carry an error")
        if not self.ok and not self.error:
            raise ValueError(f"failed outcome for {self.key} needs an error detail")

    @classmethod
    def success(cls, key: str) -> Outcome:
        return cls(key=key, ok=True)

    @classmethod
    def failure(cls, key: str, error: str) -> Outcome:
        return cls(key=key, ok=False, error=error)


@dataclass(slots=True)
class SearchPage:
    records: list[Candidate] = field(default_factory=list)
    next_page_token: str | None = None
    total: int | None = None
