"""Run result data structures produced by the orchestrator."""

from __future__ import annotations

from pydantic import BaseModel, Field

from pixelverify.models.comparison import ComparisonVerdict


class NavigationError(BaseModel):
    series_name: str
    image_index: int
    action: str  # next, switch_series, next_disabled
    message: str = ""


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str = ""
    target_url: str
    total: int = 0
    passed: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    navigation_errors: list[NavigationError] = Field(default_factory=list)
    verdicts: list[ComparisonVerdict] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0 and not self.navigation_errors

    def record(self, verdict: ComparisonVerdict) -> None:
        self.verdicts.append(verdict)
        self.total += 1
        if verdict.passed:
            self.passed += 1
        else:
            self.failed += 1
