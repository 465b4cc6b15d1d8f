"""Data models for the governance posture assessor."""

from .enums import (
    ComplianceStatus,
    EffectType,
    EnforcementMode,
    ExemptionCategory,
    ExemptionCoverage,
    ImpactLevel,
    PolicyType,
    RiskLevel,
    TestStatus,
    TrendVerdict,
)
from .assignment import PolicyAssignmentRecord, composite_key
from .impact import ImpactScore, ScoredAssignment
from .exemption import ExemptionRecord
from .compliance import ControlGroup, ControlGroupCoverage, PolicyComplianceStatus
from .testing import OrchestrationResult, TestCaseResult, TestResult
from .facts import (
    BoundaryFacts,
    FrameworkFacts,
    IdentityFacts,
    MalwareFacts,
    OpenPortFinding,
    PatchFacts,
    PrivilegedAccessFacts,
    PublicIpFinding,
    RoleAssignmentFinding,
    VulnerabilityFinding,
)
from .snapshot import SNAPSHOT_SCHEMA_VERSION, Snapshot
from .delta import AssignmentChange, DeltaReport, FieldChange
from .summary import AssessmentSummary, ExemptionAnalysis, PostureRecommendation

__all__ = [
    "ComplianceStatus",
    "EffectType",
    "EnforcementMode",
    "ExemptionCategory",
    "ExemptionCoverage",
    "ImpactLevel",
    "PolicyType",
    "RiskLevel",
    "TestStatus",
    "TrendVerdict",
    "PolicyAssignmentRecord",
    "composite_key",
    "ImpactScore",
    "ScoredAssignment",
    "ExemptionRecord",
    "ControlGroup",
    "ControlGroupCoverage",
    "PolicyComplianceStatus",
    "OrchestrationResult",
    "TestCaseResult",
    "TestResult",
    "BoundaryFacts",
    "FrameworkFacts",
    "IdentityFacts",
    "MalwareFacts",
    "OpenPortFinding",
    "PatchFacts",
    "PrivilegedAccessFacts",
    "PublicIpFinding",
    "RoleAssignmentFinding",
    "VulnerabilityFinding",
    "SNAPSHOT_SCHEMA_VERSION",
    "Snapshot",
    "AssignmentChange",
    "DeltaReport",
    "FieldChange",
    "AssessmentSummary",
    "ExemptionAnalysis",
    "PostureRecommendation",
]
