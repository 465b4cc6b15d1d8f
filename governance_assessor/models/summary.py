# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Assessment summary models."""

from datetime import datetime

from pydantic import BaseModel, Field

from .compliance import ControlGroupCoverage


class ExemptionAnalysis(BaseModel):
    """Exemption counts and expiry state at a reference date."""

    total: int = Field(0, ge=0)
    by_category: dict[str, int] = Field(default_factory=dict)
    by_scope_type: dict[str, int] = Field(default_factory=dict)
    expired: list[str] = Field(default_factory=list, description="IDs of expired exemptions")
    expiring_soon: list[str] = Field(
        default_factory=list, description="IDs expiring inside the warning window"
    )
    no_expiry: list[str] = Field(default_factory=list, description="IDs that never expire")


class PostureRecommendation(BaseModel):
    """An actionable recommendation for one assignment."""

    priority: str = Field(..., description="Priority level (high, medium, low)")
    assignment: str
    scope: str = ""
    reason: str


class AssessmentSummary(BaseModel):
    """Headline statistics for one snapshot."""

    source_timestamp: datetime
    total_assignments: int = Field(0, ge=0)
    initiatives: int = Field(0, ge=0)
    policies: int = Field(0, ge=0)
    enforced: int = Field(0, ge=0)
    not_enforced: int = Field(0, ge=0)
    enforcement_rate: float = Field(0.0, ge=0.0, le=1.0)
    assignments_with_non_compliance: int = Field(0, ge=0)
    total_non_compliant_resources: int = Field(0, ge=0)
    effect_breakdown: dict[str, int] = Field(default_factory=dict)
    high_security_impact: int = Field(0, ge=0)
    high_cost_impact: int = Field(0, ge=0)
    risk_distribution: dict[str, int] = Field(default_factory=dict)
    exemptions: ExemptionAnalysis = Field(default_factory=ExemptionAnalysis)
    control_coverage: list[ControlGroupCoverage] = Field(default_factory=list)
    test_status_counts: dict[str, int] = Field(default_factory=dict)
    recommendations: list[PostureRecommendation] = Field(default_factory=list)
