"""Utility modules for the governance posture assessor."""

from .impact_rules import ImpactRuleTables, default_impact_rules, get_impact_rules
from .logging_config import configure_logging
from .scope_utils import derive_scope, exemption_from_resource

__all__ = [
    "ImpactRuleTables",
    "default_impact_rules",
    "get_impact_rules",
    "configure_logging",
    "derive_scope",
    "exemption_from_resource",
]
