# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Policy exemption data model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .assignment import composite_key
from .enums import ExemptionCategory, ExemptionCoverage


class ExemptionRecord(BaseModel):
    """
    A scoped policy exemption.

    Scope type and name are derived from the exemption's resource ID since
    exemptions carry no reliable scope property of their own (see
    utils.scope_utils.derive_scope).
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "/subscriptions/0000/providers/Microsoft.Authorization/policyExemptions/ex1",
                "display_name": "Legacy VM waiver",
                "category": "Waiver",
                "scope_type": "Subscription",
                "scope_name": "0000",
                "coverage": "Full",
                "expires_on": "2026-12-31T00:00:00Z",
                "description": "Pending decommission",
            }
        },
    )

    id: str = Field(..., description="Exemption resource ID")
    display_name: str = Field("", description="Exemption display name")
    category: ExemptionCategory = Field(ExemptionCategory.WAIVER, description="Waiver or Mitigated")
    scope_type: str = Field("", description="Scope type derived from the resource ID")
    scope_name: str = Field("", description="Scope name derived from the resource ID")
    coverage: ExemptionCoverage = Field(
        ExemptionCoverage.FULL, description="Full, or Partial when policy references are listed"
    )
    expires_on: datetime | None = Field(None, description="Expiry, None when it never expires")
    description: str = Field("", description="Free-text justification")
    policy_assignment_id: str | None = Field(None, description="Exempted assignment ID")

    @field_validator("display_name", "scope_type", "scope_name", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def composite_key(self) -> str:
        return composite_key(self.id, self.scope_name)

    def is_expired(self, as_of: datetime) -> bool:
        """Return True when the exemption expired at or before ``as_of``."""
        if self.expires_on is None:
            return False
        return _comparable(self.expires_on, as_of) <= as_of


def _comparable(value: datetime, reference: datetime) -> datetime:
    # Naive and aware datetimes cannot be compared; treat naive as reference tz
    if value.tzinfo is None and reference.tzinfo is not None:
        return value.replace(tzinfo=reference.tzinfo)
    if value.tzinfo is not None and reference.tzinfo is None:
        return value.replace(tzinfo=None)
    return value
