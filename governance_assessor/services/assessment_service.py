# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Assessment pipeline: classify, map, test, snapshot and compare."""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..config import Settings, settings
from ..models.assignment import PolicyAssignmentRecord
from ..models.compliance import ControlGroup, PolicyComplianceStatus
from ..models.delta import DeltaReport
from ..models.exemption import ExemptionRecord
from ..models.facts import FrameworkFacts
from ..models.impact import ScoredAssignment
from ..models.snapshot import Snapshot
from ..models.testing import OrchestrationResult
from ..utils.impact_rules import get_impact_rules
from .compliance_mapper import ComplianceMapper
from .delta_service import SnapshotDeltaEngine
from .impact_classifier import ImpactClassifier
from .snapshot_store import SnapshotStore
from .test_orchestrator import TestOrchestrator

logger = logging.getLogger(__name__)


class AssessmentResult(BaseModel):
    """Everything produced by one assessment run."""

    assignments: list[ScoredAssignment] = Field(default_factory=list)
    compliance: dict[str, list[PolicyComplianceStatus]] = Field(default_factory=dict)
    orchestration: OrchestrationResult = Field(default_factory=OrchestrationResult)
    snapshot: Snapshot
    delta: Optional[DeltaReport] = Field(
        None, description="Comparison with the previously stored snapshot, when one exists"
    )


class AssessmentService:
    """
    Orchestrates one assessment run over collaborator-supplied records.

    Flow:
    1. Score every assignment (input order preserved)
    2. Map the scored assignments onto framework control groups
    3. Run the framework test catalog
    4. Assemble the snapshot
    5. Optionally compare with the latest stored snapshot and store the new one
    """

    def __init__(
        self,
        classifier: Optional[ImpactClassifier] = None,
        mapper: Optional[ComplianceMapper] = None,
        orchestrator: Optional[TestOrchestrator] = None,
        delta_engine: Optional[SnapshotDeltaEngine] = None,
        store: Optional[SnapshotStore] = None,
        config: Optional[Settings] = None,
    ):
        config = config or settings()
        self.classifier = classifier or ImpactClassifier(get_impact_rules(config.impact_rules_path))
        self.mapper = mapper or ComplianceMapper()
        self.orchestrator = orchestrator or TestOrchestrator(
            non_compliance_warn_ratio=config.non_compliance_warn_ratio,
            expiry_warning_days=config.exemption_expiry_warning_days,
        )
        self.delta_engine = delta_engine or SnapshotDeltaEngine()
        self.store = store

    def assess(
        self,
        records: Sequence[PolicyAssignmentRecord],
        exemptions: Sequence[ExemptionRecord],
        control_groups: Sequence[ControlGroup],
        source_timestamp: datetime,
        framework_facts: Optional[FrameworkFacts] = None,
        case_facts: Optional[Mapping[str, Any]] = None,
    ) -> AssessmentResult:
        """
        Run one assessment.

        Args:
            records: Assignments in retrieval order
            exemptions: Exemptions with derived scope
            control_groups: Framework control groups
            source_timestamp: When the collaborator retrieved the data; also
                the reference time for exemption expiry
            framework_facts: Phase 1 facts
            case_facts: Phase 2 facts keyed by test case id

        Returns:
            AssessmentResult (delta is always None here; see assess_and_compare)
        """
        logger.info(
            f"Assessing {len(records)} assignments, {len(exemptions)} exemptions, "
            f"{len(control_groups)} control groups"
        )

        scored = self.classifier.classify_all(records)
        compliance = self.mapper.map_compliance(control_groups, scored)
        orchestration = self.orchestrator.run(
            control_groups,
            compliance,
            framework_facts,
            case_facts,
            exemptions=exemptions,
            as_of=source_timestamp,
        )

        snapshot = Snapshot(
            source_timestamp=source_timestamp,
            assignments=scored,
            exemptions=list(exemptions),
            test_results=orchestration.all_results(),
        )

        return AssessmentResult(
            assignments=scored,
            compliance=compliance,
            orchestration=orchestration,
            snapshot=snapshot,
        )

    def compare(self, previous: Snapshot, current: Snapshot) -> DeltaReport:
        return self.delta_engine.diff(previous, current)

    def assess_and_compare(self, *args, **kwargs) -> AssessmentResult:
        """
        Run assess(), diff against the latest stored snapshot and store the new one.

        Without a store this is equivalent to assess().
        """
        result = self.assess(*args, **kwargs)
        if self.store is None:
            return result

        previous = self.store.load_latest()
        delta = self.compare(previous, result.snapshot) if previous is not None else None
        if previous is None:
            logger.info("No stored snapshot to compare against; storing baseline")

        self.store.save(result.snapshot)
        return result.model_copy(update={"delta": delta})
