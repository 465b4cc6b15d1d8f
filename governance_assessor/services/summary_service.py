# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Assessment summary generation service."""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence

from ..models.compliance import ControlGroup, PolicyComplianceStatus
from ..models.enums import EnforcementMode, ImpactLevel, PolicyType, RiskLevel
from ..models.exemption import ExemptionRecord
from ..models.impact import ScoredAssignment
from ..models.snapshot import Snapshot
from ..models.summary import AssessmentSummary, ExemptionAnalysis, PostureRecommendation
from .compliance_mapper import ComplianceMapper

logger = logging.getLogger(__name__)


class SummaryService:
    """
    Service for summarizing a snapshot into headline statistics.

    Produces:
    - Assignment counts by type, effect and enforcement mode
    - Impact and risk distributions
    - Exemption expiry analysis at a reference date
    - Control group coverage and test status counts
    - Prioritized recommendations
    """

    def __init__(self, expiry_warning_days: int = 30, max_recommendations: int = 10):
        """
        Initialize summary service.

        Args:
            expiry_warning_days: Exemptions expiring within this window are flagged
            max_recommendations: Maximum recommendations returned
        """
        self.expiry_warning_days = expiry_warning_days
        self.max_recommendations = max_recommendations

    def summarize(
        self,
        snapshot: Snapshot,
        as_of: datetime,
        compliance: Optional[Mapping[str, list[PolicyComplianceStatus]]] = None,
        control_groups: Sequence[ControlGroup] = (),
    ) -> AssessmentSummary:
        """
        Summarize one snapshot.

        Args:
            snapshot: Snapshot to summarize
            as_of: Reference time for exemption expiry
            compliance: Optional control mapping for coverage figures
            control_groups: Control groups supplying coverage display names

        Returns:
            AssessmentSummary
        """
        assignments = snapshot.assignments
        total = len(assignments)
        enforced = sum(1 for a in assignments if _mode(a) == EnforcementMode.DEFAULT.value.lower())
        initiatives = sum(
            1 for a in assignments if a.record.policy_type.lower() == PolicyType.INITIATIVE.value.lower()
        )

        coverage = []
        if compliance is not None:
            coverage = ComplianceMapper().summarize_coverage(dict(compliance), control_groups)

        # Leaf tests only; case roll-ups would count their subtests twice
        test_counts = Counter(
            r.status.value for r in snapshot.test_results if r.phase == 1 or r.parent_id is not None
        )

        summary = AssessmentSummary(
            source_timestamp=snapshot.source_timestamp,
            total_assignments=total,
            initiatives=initiatives,
            policies=total - initiatives,
            enforced=enforced,
            not_enforced=total - enforced,
            enforcement_rate=(enforced / total) if total else 0.0,
            assignments_with_non_compliance=sum(
                1 for a in assignments if a.record.non_compliant_resources > 0
            ),
            total_non_compliant_resources=sum(a.record.non_compliant_resources for a in assignments),
            effect_breakdown=dict(sorted(Counter(a.record.effect or "Unknown" for a in assignments).items())),
            high_security_impact=sum(
                1 for a in assignments if a.score.security_impact == ImpactLevel.HIGH
            ),
            high_cost_impact=sum(1 for a in assignments if a.score.cost_impact == ImpactLevel.HIGH),
            risk_distribution={
                level.value: sum(1 for a in assignments if a.score.risk_level == level)
                for level in RiskLevel
            },
            exemptions=self.analyze_exemptions(snapshot.exemptions, as_of),
            control_coverage=coverage,
            test_status_counts=dict(sorted(test_counts.items())),
            recommendations=self._generate_recommendations(assignments),
        )

        logger.info(
            f"Summarized snapshot: {total} assignments, {summary.enforcement_rate:.0%} enforced, "
            f"{len(summary.recommendations)} recommendations"
        )
        return summary

    def analyze_exemptions(
        self, exemptions: Sequence[ExemptionRecord], as_of: datetime
    ) -> ExemptionAnalysis:
        """Count exemptions by category and scope, and flag expiry state."""
        horizon = as_of + timedelta(days=self.expiry_warning_days)
        expired, expiring, no_expiry = [], [], []

        for exemption in exemptions:
            if exemption.expires_on is None:
                no_expiry.append(exemption.id)
            elif exemption.is_expired(as_of):
                expired.append(exemption.id)
            elif exemption.is_expired(horizon):
                expiring.append(exemption.id)

        return ExemptionAnalysis(
            total=len(exemptions),
            by_category=dict(sorted(Counter(e.category.value for e in exemptions).items())),
            by_scope_type=dict(sorted(Counter(e.scope_type or "Unknown" for e in exemptions).items())),
            expired=expired,
            expiring_soon=expiring,
            no_expiry=no_expiry,
        )

    def _generate_recommendations(
        self, assignments: Sequence[ScoredAssignment]
    ) -> list[PostureRecommendation]:
        """
        Generate prioritized recommendations.

        High: high-risk assignments (disabled policies) and high-security
        policies left in DoNotEnforce. Medium: enforced assignments with
        non-compliant resources. Low: Audit-only policies with high
        compliance impact.
        """
        recommendations: list[PostureRecommendation] = []

        for assignment in assignments:
            record, score = assignment.record, assignment.score
            if score.risk_level == RiskLevel.HIGH:
                recommendations.append(
                    PostureRecommendation(
                        priority="high",
                        assignment=record.name,
                        scope=record.scope_name,
                        reason=score.recommendation or "High-risk assignment",
                    )
                )
            elif _mode(assignment) == EnforcementMode.DO_NOT_ENFORCE.value.lower() and record.effect in (
                "Deny",
                "DeployIfNotExists",
                "Modify",
            ):
                recommendations.append(
                    PostureRecommendation(
                        priority="high",
                        assignment=record.name,
                        scope=record.scope_name,
                        reason=f"{record.effect} policy is not enforced; switch to Default enforcement",
                    )
                )
            elif record.non_compliant_resources > 0:
                recommendations.append(
                    PostureRecommendation(
                        priority="medium",
                        assignment=record.name,
                        scope=record.scope_name,
                        reason=f"{record.non_compliant_resources} non-compliant resource(s) to remediate",
                    )
                )
            elif record.effect in ("Audit", "AuditIfNotExists") and score.compliance_impact == ImpactLevel.HIGH:
                recommendations.append(
                    PostureRecommendation(
                        priority="low",
                        assignment=record.name,
                        scope=record.scope_name,
                        reason="Audit-only policy with high compliance impact; consider Deny",
                    )
                )

        priority_order = {"high": 0, "medium": 1, "low": 2}
        # Stable sort keeps retrieval order within a priority
        recommendations.sort(key=lambda r: priority_order[r.priority])
        return recommendations[: self.max_recommendations]


def _mode(assignment: ScoredAssignment) -> str:
    return (assignment.record.enforcement_mode or "").strip().lower()
