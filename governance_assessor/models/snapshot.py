# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Assessment snapshot model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .assignment import PERSISTED_CONTEXT
from .exemption import ExemptionRecord
from .impact import ScoredAssignment
from .testing import TestResult

SNAPSHOT_SCHEMA_VERSION = "1"


class Snapshot(BaseModel):
    """
    Everything one assessment run produced, as persisted for later comparison.

    Snapshots are read-only once built. JSON produced by ``to_json`` loads
    back through ``from_json`` into an equal snapshot. Assignment records
    loaded from an older payload note the fields it did not store.
    """

    model_config = ConfigDict(frozen=True)

    source_timestamp: datetime = Field(..., description="When the source data was retrieved")
    assignments: list[ScoredAssignment] = Field(default_factory=list)
    exemptions: list[ExemptionRecord] = Field(default_factory=list)
    test_results: list[TestResult] = Field(default_factory=list)
    schema_version: str = Field(SNAPSHOT_SCHEMA_VERSION)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str | bytes) -> "Snapshot":
        return cls.model_validate_json(payload, context={PERSISTED_CONTEXT: True})
