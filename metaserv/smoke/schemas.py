from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SmokeCheckResult(BaseModel):
    name: str
    passed: bool
    details: str | None = None


class SmokeRunSummary(BaseModel):
    base_url: str
    started_at: datetime
    finished_at: datetime
    total_checks: int
    passed_checks: int
    failed_checks: int


class SmokeRunReport(BaseModel):
    summary: SmokeRunSummary
    results: list[SmokeCheckResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.summary.failed_checks == 0
