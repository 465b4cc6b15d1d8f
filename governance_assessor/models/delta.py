# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Snapshot comparison models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import TrendVerdict
from .exemption import ExemptionRecord
from .impact import ScoredAssignment


class FieldChange(BaseModel):
    """One differing field of an assignment present in both snapshots."""

    field: str
    previous_value: Any = None
    current_value: Any = None
    previous_available: bool = Field(
        True, description="False when the previous snapshot did not record this field"
    )

    def as_tuple(self) -> tuple[str, Any, Any]:
        return (self.field, self.previous_value, self.current_value)


class AssignmentChange(BaseModel):
    """An assignment whose tracked fields differ between snapshots."""

    key: str
    name: str
    scope: str
    changes: list[FieldChange] = Field(default_factory=list)


class DeltaReport(BaseModel):
    """Structured difference between two snapshots plus a trend verdict."""

    previous_timestamp: datetime | None = None
    current_timestamp: datetime | None = None
    new_assignments: list[ScoredAssignment] = Field(default_factory=list)
    removed_assignments: list[ScoredAssignment] = Field(default_factory=list)
    changed_assignments: list[AssignmentChange] = Field(default_factory=list)
    effect_shift: dict[str, int] = Field(
        default_factory=dict, description="Signed change in assignment count per effect"
    )
    new_exemptions: list[ExemptionRecord] = Field(default_factory=list)
    removed_exemptions: list[ExemptionRecord] = Field(default_factory=list)
    previous_composite: float = 0.0
    current_composite: float = 0.0
    trend: TrendVerdict = TrendVerdict.STABLE
    trend_model_version: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(
            self.new_assignments
            or self.removed_assignments
            or self.changed_assignments
            or self.new_exemptions
            or self.removed_exemptions
        )
