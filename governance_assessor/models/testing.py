# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Framework test result models."""

from collections import Counter

from pydantic import BaseModel, ConfigDict, Field

from .enums import TestStatus


class TestResult(BaseModel):
    """Outcome of one test or subtest; never mutated once created."""

    __test__ = False

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "test_id": "TC2.1",
                "name": "High and critical vulnerabilities patched within 14 days",
                "status": "FAIL",
                "detail": "2 finding(s) with CVSS >= 7.0 older than 14 days",
                "phase": 2,
                "parent_id": "TC2",
            }
        },
    )

    test_id: str = Field(..., description="Test identifier, e.g. 1.1 or TC2.1")
    name: str = Field("", description="Human-readable test name")
    status: TestStatus = Field(..., description="PASS, FAIL, WARN, SKIP or MANUAL")
    detail: str = Field("", description="Free-text explanation of the status")
    phase: int = Field(1, ge=1, le=2, description="Phase the test belongs to")
    parent_id: str | None = Field(None, description="Owning test case for subtests")


class TestCaseResult(BaseModel):
    """Rolled-up status of a Phase 2 test case and its ordered subtests."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    test_case_id: str
    name: str = ""
    status: TestStatus
    subtests: list[TestResult] = Field(default_factory=list)

    def as_result(self) -> TestResult:
        """Summarize the case itself as a TestResult."""
        counts = Counter(s.status.value for s in self.subtests)
        detail = ", ".join(f"{counts[s.value]} {s.value}" for s in TestStatus if counts[s.value])
        return TestResult(
            test_id=self.test_case_id,
            name=self.name,
            status=self.status,
            detail=detail,
            phase=2,
        )


class OrchestrationResult(BaseModel):
    """All results from one orchestration pass."""

    phase1: list[TestResult] = Field(default_factory=list)
    phase2: list[TestCaseResult] = Field(default_factory=list)

    def all_results(self) -> list[TestResult]:
        """Flatten Phase 1 tests, then each test case followed by its subtests."""
        results = list(self.phase1)
        for case in self.phase2:
            results.append(case.as_result())
            results.extend(case.subtests)
        return results

    def get(self, test_id: str) -> TestResult | None:
        for result in self.all_results():
            if result.test_id == test_id:
                return result
        return None

    @property
    def status_counts(self) -> dict[str, int]:
        """Histogram of leaf statuses (Phase 1 tests and Phase 2 subtests)."""
        counts = {status.value: 0 for status in TestStatus}
        for result in self.phase1:
            counts[result.status.value] += 1
        for case in self.phase2:
            for subtest in case.subtests:
                counts[subtest.status.value] += 1
        return counts
