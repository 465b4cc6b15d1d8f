# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""
Rule tables for impact classification.

The tables map effects, policy categories and display-name keywords to
impact dimensions. They are loaded once (from a JSON file or the built-in
defaults), frozen, and handed to the classifier as read-only data.
"""

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ImpactRulesError
from ..models.enums import ImpactLevel, RiskLevel

logger = logging.getLogger(__name__)


class DimensionRule(BaseModel):
    """Dimension values a rule assigns; None leaves a dimension untouched."""

    model_config = ConfigDict(frozen=True)

    security: Optional[ImpactLevel] = None
    cost: Optional[ImpactLevel] = None
    compliance: Optional[ImpactLevel] = None
    overhead: Optional[ImpactLevel] = None
    risk: Optional[RiskLevel] = None
    recommendation: str = ""


class EffectRule(DimensionRule):
    """Base scoring for one or more effects."""

    effects: tuple[str, ...]
    terminal: bool = Field(False, description="Stop classification after this rule")


class CategoryRule(DimensionRule):
    """Inference for parameterised effects keyed by policy category."""

    categories: tuple[str, ...]


class KeywordRule(DimensionRule):
    """Display-name keyword detection; may only raise dimensions."""

    name: str
    pattern: str

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid keyword pattern {v!r}: {e}") from e
        return v


class ImpactRuleTables(BaseModel):
    """Complete, immutable rule set for the impact classifier."""

    model_config = ConfigDict(frozen=True)

    version: str = "1"
    default: DimensionRule = Field(
        default_factory=lambda: DimensionRule(
            security=ImpactLevel.MEDIUM,
            cost=ImpactLevel.LOW,
            compliance=ImpactLevel.MEDIUM,
            overhead=ImpactLevel.LOW,
            risk=RiskLevel.LOW,
        )
    )
    unknown_effect_recommendation: str = ""
    effect_rules: tuple[EffectRule, ...] = ()
    parameterised_effects: tuple[str, ...] = ("Parameterised", "Multiple")
    parameterised_base: DimensionRule = Field(default_factory=DimensionRule)
    category_rules: tuple[CategoryRule, ...] = ()
    category_default: DimensionRule = Field(default_factory=DimensionRule)
    overhead_rules: tuple[CategoryRule, ...] = ()
    overhead_default: ImpactLevel = ImpactLevel.LOW
    keyword_rules: tuple[KeywordRule, ...] = ()
    risk_bonus_keywords: tuple[str, ...] = ("Deny", "DeployIfNotExists", "Modify")
    not_enforced_notice: str = ""

    @classmethod
    def from_file(cls, path: str | Path) -> "ImpactRuleTables":
        """
        Load and validate a rule table file.

        Raises:
            ImpactRulesError: If the file is missing, not JSON, or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ImpactRulesError(f"Impact rule file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ImpactRulesError(f"Invalid JSON in impact rule file {path}: {e}") from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ImpactRulesError(f"Invalid impact rule structure in {path}: {e}") from e


H = ImpactLevel.HIGH
M = ImpactLevel.MEDIUM
L = ImpactLevel.LOW
N = ImpactLevel.NONE


def default_impact_rules() -> ImpactRuleTables:
    """Built-in rule tables."""
    return ImpactRuleTables(
        unknown_effect_recommendation=(
            "Effect could not be resolved; scored with conservative defaults."
        ),
        effect_rules=(
            EffectRule(
                effects=("Deny",),
                security=H,
                compliance=H,
                risk=RiskLevel.MEDIUM,
                recommendation=(
                    "Deny blocks non-compliant deployments; validate against existing "
                    "workloads before widening the scope."
                ),
            ),
            EffectRule(
                effects=("Audit", "AuditIfNotExists"),
                security=L,
                compliance=M,
                recommendation=(
                    "Audit only reports non-compliance; move to Deny or DeployIfNotExists "
                    "once findings are remediated."
                ),
            ),
            EffectRule(
                effects=("DeployIfNotExists", "Modify"),
                security=H,
                cost=M,
                overhead=M,
                compliance=H,
                recommendation=(
                    "Remediates automatically; review the managed identity permissions "
                    "and the cost of deployed resources."
                ),
            ),
            EffectRule(
                effects=("Disabled",),
                security=N,
                cost=N,
                compliance=N,
                overhead=N,
                risk=RiskLevel.HIGH,
                terminal=True,
                recommendation=(
                    "Policy is disabled and provides no protection; enable it or remove "
                    "the assignment."
                ),
            ),
        ),
        parameterised_base=DimensionRule(
            security=L,
            cost=L,
            compliance=M,
            overhead=L,
            recommendation="Effects vary by parameter; impact inferred from the policy category.",
        ),
        category_rules=(
            CategoryRule(
                categories=("Security Center", "Monitoring", "Backup"),
                cost=H,
                security=H,
                recommendation=(
                    "Deploys paid protection or telemetry plans; budget for per-resource charges."
                ),
            ),
            CategoryRule(
                categories=("Network", "Compute", "Identity"),
                cost=M,
                security=H,
            ),
        ),
        category_default=DimensionRule(cost=L, security=L),
        overhead_rules=(
            CategoryRule(categories=("Security Center", "Monitoring", "Backup"), overhead=H),
            CategoryRule(
                categories=("Network", "Compute", "SQL", "Regulatory Compliance"), overhead=M
            ),
        ),
        overhead_default=L,
        keyword_rules=(
            KeywordRule(
                name="public-exposure",
                pattern=r"\bpublic\b|internet|external.?network",
                security=H,
                recommendation="Controls internet exposure; confirm inbound paths before enforcing.",
            ),
            KeywordRule(
                name="monitoring",
                pattern=r"monitor|\blog(s|ging)?\b|diagnostic",
                cost=M,
                overhead=M,
                recommendation="Generates log ingestion; check workspace retention and volume.",
            ),
            KeywordRule(
                name="backup",
                pattern=r"backup|disaster.?recovery|site.?recovery",
                cost=H,
                security=H,
                recommendation="Backup and recovery storage grows with protected resources.",
            ),
            KeywordRule(
                name="encryption",
                pattern=r"encrypt|\btls\b|\bssl\b",
                security=H,
                compliance=H,
                recommendation="Encryption requirement; verify key management ownership.",
            ),
            KeywordRule(
                name="tagging",
                pattern=r"\btag(s|ging)?\b|naming",
                cost=L,
                overhead=L,
                recommendation="Tagging and naming controls support cost allocation.",
            ),
            KeywordRule(
                name="defender",
                pattern=r"defender|security.?center|sentinel|asc.?default",
                cost=H,
                security=H,
                recommendation="Enables Defender or Sentinel capabilities billed per resource.",
            ),
        ),
        not_enforced_notice=(
            "Assignment is in DoNotEnforce mode and is not actively enforced; "
            "non-compliance is reported but never prevented or remediated."
        ),
    )


@lru_cache(maxsize=8)
def get_impact_rules(path: Optional[str] = None) -> ImpactRuleTables:
    """
    Return the rule tables for this run.

    Uses ``path`` or the IMPACT_RULES_PATH environment variable when set.
    Unreadable or invalid files fall back to the built-in tables so that
    classification always has rules to apply.
    """
    config_path = path or os.environ.get("IMPACT_RULES_PATH")
    if not config_path:
        return default_impact_rules()

    try:
        tables = ImpactRuleTables.from_file(config_path)
        logger.info(f"Loaded impact rule tables version {tables.version} from {config_path}")
        return tables
    except ImpactRulesError as e:
        logger.error(f"{e}; using built-in impact rule tables")
        return default_impact_rules()
