# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Control group and per-control compliance models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ComplianceStatus
from .impact import ImpactScore


class ControlGroup(BaseModel):
    """A named compliance bucket taken from an initiative definition."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "group_id": "CE_Firewalls",
                "name": "Firewalls & Internet Gateways",
                "controls": [
                    "Network interfaces should not have public IPs",
                    "All network ports should be restricted on network security groups",
                ],
            }
        },
    )

    group_id: str = Field(..., description="Stable group identifier")
    name: str = Field("", description="Display name of the control area")
    controls: list[str] = Field(
        default_factory=list, description="Required control display names, in definition order"
    )


class PolicyComplianceStatus(BaseModel):
    """Deployment status of a single required control."""

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(..., description="Control group the control belongs to")
    control_name: str = Field(..., description="Required control display name")
    status: ComplianceStatus = Field(..., description="Deployed+Enforced, Deployed+NotEnforced or Missing")
    matched_assignment: str | None = Field(None, description="Name of the matching assignment")
    matched_scope: str | None = Field(None, description="Scope of the matching assignment")
    matched_by: str | None = Field(
        None, description="Field that matched: display_name, name or definition_name"
    )
    match_count: int = Field(0, ge=0, description="Assignments matching on the winning field")
    impact: ImpactScore | None = Field(None, description="Impact of the matched assignment")

    @property
    def deployed(self) -> bool:
        return self.status != ComplianceStatus.MISSING

    @property
    def enforced(self) -> bool:
        return self.status == ComplianceStatus.DEPLOYED_ENFORCED


class ControlGroupCoverage(BaseModel):
    """Counts of control states within one control group."""

    group_id: str
    name: str = ""
    total_controls: int = Field(0, ge=0)
    enforced: int = Field(0, ge=0)
    not_enforced: int = Field(0, ge=0)
    missing: int = Field(0, ge=0)

    @property
    def coverage_ratio(self) -> float:
        """Share of controls deployed (enforced or not); 1.0 for an empty group."""
        if self.total_controls == 0:
            return 1.0
        return (self.enforced + self.not_enforced) / self.total_controls
