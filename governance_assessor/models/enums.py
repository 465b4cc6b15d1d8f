# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Enumerations shared by the assessment models."""

from enum import Enum


class PolicyType(str, Enum):
    """Kind of policy definition behind an assignment."""

    POLICY = "Policy"
    INITIATIVE = "Initiative"


class EffectType(str, Enum):
    """Resolved policy effect."""

    DENY = "Deny"
    AUDIT = "Audit"
    AUDIT_IF_NOT_EXISTS = "AuditIfNotExists"
    DEPLOY_IF_NOT_EXISTS = "DeployIfNotExists"
    MODIFY = "Modify"
    DISABLED = "Disabled"
    PARAMETERISED = "Parameterised"
    MULTIPLE = "Multiple"


class EnforcementMode(str, Enum):
    """Whether the assignment's effect is actively applied."""

    DEFAULT = "Default"
    DO_NOT_ENFORCE = "DoNotEnforce"


class ImpactLevel(str, Enum):
    """Severity of one impact dimension."""

    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _IMPACT_RANKS[self]


class RiskLevel(str, Enum):
    """Overall risk level of an assignment."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _RISK_RANKS[self]


_IMPACT_RANKS = {
    ImpactLevel.NONE: 0,
    ImpactLevel.LOW: 1,
    ImpactLevel.MEDIUM: 2,
    ImpactLevel.HIGH: 3,
}

_RISK_RANKS = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
}


class ExemptionCategory(str, Enum):
    """Reason an exemption was granted."""

    WAIVER = "Waiver"
    MITIGATED = "Mitigated"


class ExemptionCoverage(str, Enum):
    """Whether an exemption covers every policy in the assignment."""

    FULL = "Full"
    PARTIAL = "Partial"


class ComplianceStatus(str, Enum):
    """Deployment state of one required control."""

    DEPLOYED_ENFORCED = "Deployed+Enforced"
    DEPLOYED_NOT_ENFORCED = "Deployed+NotEnforced"
    MISSING = "Missing"


class TestStatus(str, Enum):
    """Terminal status of a test or subtest."""

    __test__ = False

    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"
    SKIP = "SKIP"
    MANUAL = "MANUAL"


class TrendVerdict(str, Enum):
    """Direction of posture change between two snapshots."""

    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DEGRADING = "DEGRADING"
