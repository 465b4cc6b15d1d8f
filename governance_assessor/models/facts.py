# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Fact payloads gathered by query collaborators for the framework tests."""

from pydantic import BaseModel, Field


class FrameworkFacts(BaseModel):
    """Facts backing the Phase 1 framework tests."""

    initiative_found: bool = Field(False, description="Framework initiative definition exists")
    initiative_assigned: bool = Field(False, description="Initiative is assigned at some scope")
    initiative_enforcement_mode: str = Field(
        "Default", description="Enforcement mode of the initiative assignment"
    )
    total_resources: int = Field(0, ge=0, description="Resources evaluated by the initiative")
    non_compliant_resources: int = Field(0, ge=0, description="Non-compliant resources")


class PublicIpFinding(BaseModel):
    """A public IP address and whether an NSG guards it."""

    name: str
    resource_group: str = ""
    associated_resource: str | None = None
    nsg_attached: bool = False


class OpenPortFinding(BaseModel):
    """An inbound NSG rule exposing a management port."""

    nsg_name: str
    rule_name: str
    port: int = Field(..., ge=0, le=65535)
    source: str = "*"


class BoundaryFacts(BaseModel):
    """Facts for the boundary firewall test case."""

    public_ips: list[PublicIpFinding] = Field(default_factory=list)
    open_management_ports: list[OpenPortFinding] = Field(default_factory=list)


class VulnerabilityFinding(BaseModel):
    """A missing patch or vulnerability on a machine."""

    resource: str
    cve_id: str = ""
    cvss: float = Field(0.0, ge=0.0, le=10.0)
    age_days: int = Field(0, ge=0, description="Days since the fix was published")


class PatchFacts(BaseModel):
    """Facts for the security update management test case."""

    findings: list[VulnerabilityFinding] = Field(default_factory=list)
    unsupported_os_machines: list[str] = Field(default_factory=list)


class MalwareFacts(BaseModel):
    """Facts for the malware protection test case."""

    machines_total: int = Field(0, ge=0)
    machines_protected: int = Field(0, ge=0)


class IdentityFacts(BaseModel):
    """Facts for the multi-factor authentication test case."""

    users_total: int = Field(0, ge=0)
    users_mfa_registered: int = Field(0, ge=0)
    ca_policies_requiring_mfa: int = Field(0, ge=0)
    ca_policies_report_only: int = Field(0, ge=0)
    legacy_auth_blocked: bool = False


class RoleAssignmentFinding(BaseModel):
    """A privileged RBAC role assignment."""

    principal_name: str
    role_name: str
    principal_type: str = "User"
    scope: str = ""


class PrivilegedAccessFacts(BaseModel):
    """Facts for the account separation test case."""

    standing_privileged_assignments: list[RoleAssignmentFinding] = Field(default_factory=list)
    privileged_guest_assignments: list[RoleAssignmentFinding] = Field(default_factory=list)
