"""Service layer for the governance posture assessor."""

from .impact_classifier import ImpactClassifier, classify
from .compliance_mapper import ComplianceMapper, map_compliance
from .test_orchestrator import TestOrchestrator
from .delta_service import SnapshotDeltaEngine, diff, format_effect_shift
from .snapshot_store import SnapshotStore, read_snapshot, write_snapshot
from .summary_service import SummaryService
from .assessment_service import AssessmentResult, AssessmentService

__all__ = [
    "ImpactClassifier",
    "classify",
    "ComplianceMapper",
    "map_compliance",
    "TestOrchestrator",
    "SnapshotDeltaEngine",
    "diff",
    "format_effect_shift",
    "SnapshotStore",
    "read_snapshot",
    "write_snapshot",
    "SummaryService",
    "AssessmentResult",
    "AssessmentService",
]
