# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Scope derivation from Azure resource IDs.

Exemptions carry no reliable scope property, so their scope is read from
the exemption's own resource ID.
"""

import logging
import re
from datetime import datetime
from typing import Any, Optional

from ..models.enums import ExemptionCategory, ExemptionCoverage
from ..models.exemption import ExemptionRecord

logger = logging.getLogger(__name__)

SCOPE_MANAGEMENT_GROUP = "Management Group"
SCOPE_SUBSCRIPTION = "Subscription"
SCOPE_RESOURCE_GROUP = "Resource Group"
SCOPE_RESOURCE = "Resource"
SCOPE_UNKNOWN = "Unknown"

MANAGEMENT_GROUP_PATTERN = re.compile(
    r"^/providers/Microsoft\.Management/managementGroups/([^/]+)", re.IGNORECASE
)
SUBSCRIPTION_PATTERN = re.compile(r"^/subscriptions/([^/]+)", re.IGNORECASE)
RESOURCE_GROUP_PATTERN = re.compile(
    r"^/subscriptions/[^/]+/resourceGroups/([^/]+)", re.IGNORECASE
)

# Policy exemptions and assignments are extension resources of their scope
EXTENSION_SEGMENT = re.compile(
    r"/providers/Microsoft\.Authorization/(?:policyExemptions|policyAssignments)/[^/]+$",
    re.IGNORECASE,
)


def strip_extension(resource_id: str) -> str:
    """Return the scope part of an exemption or assignment resource ID."""
    return EXTENSION_SEGMENT.sub("", resource_id.rstrip("/"))


def derive_scope(resource_id: Optional[str]) -> tuple[str, str]:
    """
    Derive (scope_type, scope_name) from a resource ID.

    Example:
        >>> derive_scope("/subscriptions/abc/resourceGroups/rg1/providers/"
        ...              "Microsoft.Authorization/policyExemptions/ex1")
        ('Resource Group', 'rg1')

    Unrecognized IDs yield ("Unknown", resource_id) rather than raising.
    """
    if not resource_id or not isinstance(resource_id, str):
        return SCOPE_UNKNOWN, ""

    scope = strip_extension(resource_id.strip())

    match = MANAGEMENT_GROUP_PATTERN.match(scope)
    if match:
        return SCOPE_MANAGEMENT_GROUP, match.group(1)

    match = RESOURCE_GROUP_PATTERN.match(scope)
    if match:
        # Anything below the resource group is an individual resource
        remainder = scope[match.end():]
        if remainder.strip("/"):
            return SCOPE_RESOURCE, scope.rsplit("/", 1)[-1]
        return SCOPE_RESOURCE_GROUP, match.group(1)

    match = SUBSCRIPTION_PATTERN.match(scope)
    if match:
        return SCOPE_SUBSCRIPTION, match.group(1)

    logger.debug(f"Could not derive scope from resource ID: {resource_id}")
    return SCOPE_UNKNOWN, resource_id


def exemption_from_resource(data: dict[str, Any]) -> ExemptionRecord:
    """
    Build an ExemptionRecord from a raw exemption resource.

    Accepts the ARM shape (``id`` plus ``properties``) or a flat dict.
    Coverage is Partial when the exemption lists specific policy definition
    reference IDs, Full otherwise.
    """
    properties = data.get("properties") or data
    resource_id = data.get("id") or data.get("resource_id") or ""
    scope_type, scope_name = derive_scope(resource_id)

    references = properties.get("policyDefinitionReferenceIds") or []
    coverage = ExemptionCoverage.PARTIAL if references else ExemptionCoverage.FULL

    return ExemptionRecord(
        id=resource_id,
        display_name=properties.get("displayName") or data.get("name") or "",
        category=_parse_category(properties.get("exemptionCategory")),
        scope_type=scope_type,
        scope_name=scope_name,
        coverage=coverage,
        expires_on=_parse_datetime(properties.get("expiresOn")),
        description=properties.get("description") or "",
        policy_assignment_id=properties.get("policyAssignmentId"),
    )


def _parse_category(value: Any) -> ExemptionCategory:
    if isinstance(value, str) and value.strip().lower() == "mitigated":
        return ExemptionCategory.MITIGATED
    return ExemptionCategory.WAIVER


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable exemption expiry '{value}'; treating as no expiry")
        return None
