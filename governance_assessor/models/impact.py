# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Impact score data models."""

from pydantic import BaseModel, ConfigDict, Field

from .assignment import PolicyAssignmentRecord
from .enums import ImpactLevel, RiskLevel


class ImpactScore(BaseModel):
    """Multi-dimensional impact of one policy assignment."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "security_impact": "High",
                "cost_impact": "Low",
                "compliance_impact": "High",
                "operational_overhead": "Low",
                "risk_level": "Low",
                "recommendation": "Blocks non-compliant deployments.",
            }
        },
    )

    security_impact: ImpactLevel = Field(ImpactLevel.MEDIUM, description="Security impact")
    cost_impact: ImpactLevel = Field(ImpactLevel.LOW, description="Cost impact")
    compliance_impact: ImpactLevel = Field(ImpactLevel.MEDIUM, description="Compliance impact")
    operational_overhead: ImpactLevel = Field(
        ImpactLevel.LOW, description="Operational overhead of running the policy"
    )
    risk_level: RiskLevel = Field(RiskLevel.LOW, description="Overall risk level")
    recommendation: str = Field("", description="Recommendations from every triggered rule")


class ScoredAssignment(BaseModel):
    """A policy assignment paired with its impact score."""

    model_config = ConfigDict(frozen=True)

    record: PolicyAssignmentRecord
    score: ImpactScore

    @property
    def composite_key(self) -> str:
        return self.record.composite_key
