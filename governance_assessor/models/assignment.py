# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Policy assignment input record."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

COMPOSITE_KEY_SEPARATOR = "|||"

# Validation context key set when a record is read back from storage
PERSISTED_CONTEXT = "persisted"


def composite_key(name: str, scope: str) -> str:
    """Join an entity name and its scope into a delta matching key."""
    return f"{name}{COMPOSITE_KEY_SEPARATOR}{scope}"


class PolicyAssignmentRecord(BaseModel):
    """
    Normalized policy assignment supplied by the enumeration layer.

    Policy definition metadata (display name, category, true effect) is
    already resolved. Effect and enforcement mode are kept as plain strings
    so that unexpected values are scored with the default rather than
    rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Deny-PublicIP",
                "display_name": "Network interfaces should not have public IPs",
                "definition_name": "83a86a26-fd1f-447c-b59d-e51f44264114",
                "policy_type": "Policy",
                "category": "Network",
                "effect": "Deny",
                "effect_summary": None,
                "enforcement_mode": "Default",
                "scope_type": "Management Group",
                "scope_name": "/mg/A",
                "non_compliant_resources": 0,
                "non_compliant_policies": 0,
                "exemption_count": 0,
            }
        },
    )

    name: str = Field("", description="Assignment name")
    display_name: str = Field("", description="Resolved human-readable policy display name")
    definition_name: str | None = Field(
        None, description="Policy definition name, used only for control matching"
    )
    policy_type: str = Field("Policy", description="Policy or Initiative")
    category: str = Field("", description="Category from the policy definition metadata")
    effect: str = Field("", description="Resolved effect (Deny, Audit, Parameterised, ...)")
    effect_summary: str | None = Field(
        None,
        description="Aggregated member effects of an initiative, e.g. 'Deny, Audit'",
    )
    enforcement_mode: str = Field("Default", description="Default or DoNotEnforce")
    scope_type: str = Field("", description="Scope type (Management Group, Subscription, ...)")
    scope_name: str = Field("", description="Scope name or identifier")
    non_compliant_resources: int = Field(0, ge=0, description="Non-compliant resource count")
    non_compliant_policies: int = Field(0, ge=0, description="Non-compliant policy count")
    exemption_count: int = Field(0, ge=0, description="Exemptions attached to the assignment")
    unrecorded_fields: list[str] = Field(
        default_factory=list,
        description="Fields missing from the stored payload this record was loaded from",
    )

    @model_validator(mode="before")
    @classmethod
    def _note_unrecorded_fields(cls, data: Any, info: ValidationInfo) -> Any:
        # Records built in memory are complete; only stored payloads can predate a field
        if not isinstance(data, dict) or not (info.context or {}).get(PERSISTED_CONTEXT):
            return data
        if "unrecorded_fields" in data:
            return data
        absent = [name for name in cls.model_fields if name != "unrecorded_fields" and name not in data]
        return {**data, "unrecorded_fields": absent}

    @field_validator(
        "name",
        "display_name",
        "policy_type",
        "category",
        "effect",
        "scope_type",
        "scope_name",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("enforcement_mode", mode="before")
    @classmethod
    def _default_enforcement(cls, v):
        if v is None or not str(v).strip():
            return "Default"
        return str(v).strip()

    @field_validator(
        "non_compliant_resources", "non_compliant_policies", "exemption_count", mode="before"
    )
    @classmethod
    def _coerce_count(cls, v):
        # Counts arrive as None, strings or negative sentinels from some APIs
        try:
            count = int(v)
        except (TypeError, ValueError):
            return 0
        return max(count, 0)

    @property
    def composite_key(self) -> str:
        """Name plus scope; names alone recur across scopes."""
        return composite_key(self.name, self.scope_name)
