# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Comparison of two assessment snapshots."""

import logging
from collections import Counter
from typing import Any, Iterable

from ..models.delta import AssignmentChange, DeltaReport, FieldChange
from ..models.enums import EnforcementMode, ImpactLevel, TrendVerdict
from ..models.exemption import ExemptionRecord
from ..models.impact import ScoredAssignment
from ..models.snapshot import Snapshot

logger = logging.getLogger(__name__)

# Assignment fields compared between snapshots, in report order
COMPARED_FIELDS = (
    "effect",
    "enforcement_mode",
    "non_compliant_resources",
    "non_compliant_policies",
    "category",
    "exemption_count",
)

# Trend model, version 1. Changing any constant below changes verdicts for
# stored snapshot pairs, so bump TREND_MODEL_VERSION with it.
#   composite = 0.4 * enforcement rate        (Default-mode assignments / total)
#             + 0.4 * compliance rate         (1 - share of assignments with
#                                              non-compliant resources)
#             + 0.2 * risk-weighted coverage  (High-security Default-mode
#                                              assignments / total)
# A change larger than TREND_TOLERANCE either way moves the verdict off STABLE.
TREND_MODEL_VERSION = "1"
ENFORCEMENT_WEIGHT = 0.4
COMPLIANCE_WEIGHT = 0.4
RISK_COVERAGE_WEIGHT = 0.2
TREND_TOLERANCE = 0.02

UNKNOWN_EFFECT = "Unknown"


class SnapshotDeltaEngine:
    """
    Diffs two snapshots by composite key (name + "|||" + scope).

    Assignments with the same name at different scopes are distinct
    entities; matching by name alone would report false adds and removes.
    """

    def diff(self, previous: Snapshot, current: Snapshot) -> DeltaReport:
        """
        Compare two snapshots.

        Args:
            previous: Earlier snapshot
            current: Later snapshot

        Returns:
            DeltaReport with new/removed/changed assignments, effect shift,
            exemption changes and trend verdict
        """
        previous_index = _index_assignments(previous.assignments)
        current_index = _index_assignments(current.assignments)

        new_assignments = [a for k, a in current_index.items() if k not in previous_index]
        removed_assignments = [a for k, a in previous_index.items() if k not in current_index]

        changed = []
        for key, current_assignment in current_index.items():
            previous_assignment = previous_index.get(key)
            if previous_assignment is None:
                continue
            changes = compare_assignments(previous_assignment, current_assignment)
            if changes:
                changed.append(
                    AssignmentChange(
                        key=key,
                        name=current_assignment.record.name,
                        scope=current_assignment.record.scope_name,
                        changes=changes,
                    )
                )

        new_exemptions, removed_exemptions = diff_exemptions(previous.exemptions, current.exemptions)

        previous_composite = composite_score(previous.assignments)
        current_composite = composite_score(current.assignments)
        trend = trend_verdict(previous_composite, current_composite)

        report = DeltaReport(
            previous_timestamp=previous.source_timestamp,
            current_timestamp=current.source_timestamp,
            new_assignments=new_assignments,
            removed_assignments=removed_assignments,
            changed_assignments=changed,
            effect_shift=effect_shift(previous.assignments, current.assignments),
            new_exemptions=new_exemptions,
            removed_exemptions=removed_exemptions,
            previous_composite=previous_composite,
            current_composite=current_composite,
            trend=trend,
            trend_model_version=TREND_MODEL_VERSION,
        )

        logger.info(
            f"Snapshot delta: {len(new_assignments)} new, {len(removed_assignments)} removed, "
            f"{len(changed)} changed assignments; trend {trend.value} "
            f"({previous_composite:.3f} -> {current_composite:.3f})"
        )
        return report


def _index_assignments(assignments: Iterable[ScoredAssignment]) -> dict[str, ScoredAssignment]:
    index: dict[str, ScoredAssignment] = {}
    for assignment in assignments:
        key = assignment.composite_key
        if key in index:
            # Keep the first occurrence, in snapshot order
            logger.warning(f"Duplicate assignment key in snapshot: {key}")
            continue
        index[key] = assignment
    return index


def compare_assignments(previous: ScoredAssignment, current: ScoredAssignment) -> list[FieldChange]:
    """
    Field-level comparison of one assignment across snapshots.

    A field missing from the stored payload of the previous record (older
    snapshot schema) only holds a model default there; when the current
    value differs it is reported with previous_value None and
    previous_available=False. Records built in memory are always complete,
    so a snapshot and its JSON round trip diff identically.
    """
    previous_record = previous.record
    current_record = current.record
    changes = []

    for field in COMPARED_FIELDS:
        previous_value = _plain(getattr(previous_record, field))
        current_value = _plain(getattr(current_record, field))
        if previous_value == current_value:
            continue

        if field in previous_record.unrecorded_fields:
            changes.append(
                FieldChange(
                    field=field,
                    previous_value=None,
                    current_value=current_value,
                    previous_available=False,
                )
            )
        else:
            changes.append(
                FieldChange(field=field, previous_value=previous_value, current_value=current_value)
            )

    return changes


def diff_exemptions(
    previous: Iterable[ExemptionRecord], current: Iterable[ExemptionRecord]
) -> tuple[list[ExemptionRecord], list[ExemptionRecord]]:
    """New and removed exemptions by composite key; exemptions are not field-diffed."""
    previous_index = {e.composite_key: e for e in previous}
    current_index = {e.composite_key: e for e in current}
    new = [e for k, e in current_index.items() if k not in previous_index]
    removed = [e for k, e in previous_index.items() if k not in current_index]
    return new, removed


def effect_histogram(assignments: Iterable[ScoredAssignment]) -> Counter:
    return Counter(a.record.effect or UNKNOWN_EFFECT for a in assignments)


def effect_shift(
    previous: Iterable[ScoredAssignment], current: Iterable[ScoredAssignment]
) -> dict[str, int]:
    """Signed change in assignment count per effect; zero deltas omitted."""
    before = effect_histogram(previous)
    after = effect_histogram(current)
    shift = {}
    for effect in sorted(set(before) | set(after)):
        delta = after[effect] - before[effect]
        if delta:
            shift[effect] = delta
    return shift


def format_effect_shift(shift: dict[str, int]) -> str:
    """Render a shift as '+3 Deny, -2 Audit', largest moves first."""
    ordered = sorted(shift.items(), key=lambda item: (-abs(item[1]), item[0]))
    return ", ".join(f"{delta:+d} {effect}" for effect, delta in ordered)


def composite_score(assignments: Iterable[ScoredAssignment]) -> float:
    """Posture score in [0, 1] under trend model TREND_MODEL_VERSION; 0.0 when empty."""
    assignments = list(assignments)
    total = len(assignments)
    if total == 0:
        return 0.0

    enforced = [a for a in assignments if _is_enforced(a)]
    non_compliant = sum(1 for a in assignments if a.record.non_compliant_resources > 0)
    high_security_enforced = sum(
        1 for a in enforced if a.score.security_impact == ImpactLevel.HIGH
    )

    enforcement_rate = len(enforced) / total
    compliance_rate = 1.0 - non_compliant / total
    risk_coverage = high_security_enforced / total

    return round(
        ENFORCEMENT_WEIGHT * enforcement_rate
        + COMPLIANCE_WEIGHT * compliance_rate
        + RISK_COVERAGE_WEIGHT * risk_coverage,
        6,
    )


def trend_verdict(previous_composite: float, current_composite: float) -> TrendVerdict:
    delta = current_composite - previous_composite
    if delta > TREND_TOLERANCE:
        return TrendVerdict.IMPROVING
    if delta < -TREND_TOLERANCE:
        return TrendVerdict.DEGRADING
    return TrendVerdict.STABLE


def _is_enforced(assignment: ScoredAssignment) -> bool:
    mode = (assignment.record.enforcement_mode or "").strip().lower()
    return mode == EnforcementMode.DEFAULT.value.lower()


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def diff(previous: Snapshot, current: Snapshot) -> DeltaReport:
    """Module-level shortcut for SnapshotDeltaEngine().diff."""
    return SnapshotDeltaEngine().diff(previous, current)
