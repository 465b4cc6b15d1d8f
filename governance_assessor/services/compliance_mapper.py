# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Mapping of deployed assignments onto framework control groups."""

import logging
from typing import Sequence

from ..models.compliance import ControlGroup, ControlGroupCoverage, PolicyComplianceStatus
from ..models.enums import ComplianceStatus, EnforcementMode
from ..models.impact import ScoredAssignment

logger = logging.getLogger(__name__)

# Fields searched for a control name, highest priority first
MATCH_FIELDS = ("display_name", "name", "definition_name")


class ComplianceMapper:
    """
    Derives Deployed/Missing/Enforced status for every required control.

    Ordering contract: assignments are searched in the order they are
    passed in, which callers keep as the original retrieval order. When
    several assignments match a control on the same field, the first one
    wins; the output keeps control group order and control order.
    """

    def map_compliance(
        self,
        control_groups: Sequence[ControlGroup],
        assignments: Sequence[ScoredAssignment],
    ) -> dict[str, list[PolicyComplianceStatus]]:
        """
        Map required controls to assignments.

        Args:
            control_groups: Control groups from the framework initiative
            assignments: Scored assignments in retrieval order

        Returns:
            Control statuses keyed by group_id, in control group order.
            Groups without controls are omitted.
        """
        index = self._build_index(assignments)
        mapping: dict[str, list[PolicyComplianceStatus]] = {}

        for group in control_groups:
            if not group.controls:
                continue

            statuses = mapping.setdefault(group.group_id, [])
            for control_name in group.controls:
                statuses.append(self._resolve_control(group, control_name, index))

        logger.info(
            f"Mapped {sum(len(v) for v in mapping.values())} controls across "
            f"{len(mapping)} control groups against {len(assignments)} assignments"
        )
        return mapping

    def summarize_coverage(
        self,
        mapping: dict[str, list[PolicyComplianceStatus]],
        control_groups: Sequence[ControlGroup] = (),
    ) -> list[ControlGroupCoverage]:
        """Count enforced, not-enforced and missing controls per group."""
        names = {g.group_id: g.name for g in control_groups}
        coverage = []
        for group_id, statuses in mapping.items():
            coverage.append(
                ControlGroupCoverage(
                    group_id=group_id,
                    name=names.get(group_id, ""),
                    total_controls=len(statuses),
                    enforced=sum(1 for s in statuses if s.status == ComplianceStatus.DEPLOYED_ENFORCED),
                    not_enforced=sum(
                        1 for s in statuses if s.status == ComplianceStatus.DEPLOYED_NOT_ENFORCED
                    ),
                    missing=sum(1 for s in statuses if s.status == ComplianceStatus.MISSING),
                )
            )
        return coverage

    def _build_index(
        self, assignments: Sequence[ScoredAssignment]
    ) -> dict[str, dict[str, list[ScoredAssignment]]]:
        """Lower-cased value -> matching assignments (input order) per field."""
        index: dict[str, dict[str, list[ScoredAssignment]]] = {f: {} for f in MATCH_FIELDS}
        for assignment in assignments:
            for field in MATCH_FIELDS:
                value = getattr(assignment.record, field, None)
                if not value:
                    continue
                index[field].setdefault(value.strip().lower(), []).append(assignment)
        return index

    def _resolve_control(
        self,
        group: ControlGroup,
        control_name: str,
        index: dict[str, dict[str, list[ScoredAssignment]]],
    ) -> PolicyComplianceStatus:
        key = control_name.strip().lower()

        for field in MATCH_FIELDS:
            matches = index[field].get(key)
            if not matches:
                continue

            chosen = matches[0]
            if len(matches) > 1:
                logger.info(
                    f"Control '{control_name}' matched {len(matches)} assignments by {field}; "
                    f"using first in retrieval order: {chosen.record.name} at "
                    f"{chosen.record.scope_name}"
                )

            return PolicyComplianceStatus(
                group_id=group.group_id,
                control_name=control_name,
                status=_status_for(chosen),
                matched_assignment=chosen.record.name,
                matched_scope=chosen.record.scope_name,
                matched_by=field,
                match_count=len(matches),
                impact=chosen.score,
            )

        return PolicyComplianceStatus(
            group_id=group.group_id,
            control_name=control_name,
            status=ComplianceStatus.MISSING,
        )


def _status_for(assignment: ScoredAssignment) -> ComplianceStatus:
    mode = (assignment.record.enforcement_mode or "").strip().lower()
    if mode == EnforcementMode.DO_NOT_ENFORCE.value.lower():
        return ComplianceStatus.DEPLOYED_NOT_ENFORCED
    return ComplianceStatus.DEPLOYED_ENFORCED


def map_compliance(
    control_groups: Sequence[ControlGroup], assignments: Sequence[ScoredAssignment]
) -> dict[str, list[PolicyComplianceStatus]]:
    """Module-level shortcut for ComplianceMapper().map_compliance."""
    return ComplianceMapper().map_compliance(control_groups, assignments)
