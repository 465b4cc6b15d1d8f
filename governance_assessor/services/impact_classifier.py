# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Impact classification of policy assignments."""

import logging
import re
from typing import Iterable, Optional

from ..models.assignment import PolicyAssignmentRecord
from ..models.enums import EnforcementMode, ImpactLevel, RiskLevel
from ..models.impact import ImpactScore, ScoredAssignment
from ..utils.impact_rules import DimensionRule, ImpactRuleTables, get_impact_rules

logger = logging.getLogger(__name__)

_DIMENSIONS = ("security", "cost", "compliance", "overhead")


class _ScoreState:
    """Mutable working copy of a score while rules are applied."""

    def __init__(self, default: DimensionRule):
        self.levels: dict[str, ImpactLevel] = {
            dim: getattr(default, dim) or ImpactLevel.MEDIUM for dim in _DIMENSIONS
        }
        self.risk: RiskLevel = default.risk or RiskLevel.LOW
        self.notes: list[str] = []

    def assign(self, rule: DimensionRule) -> None:
        """Set every dimension the rule names."""
        for dim in _DIMENSIONS:
            level = getattr(rule, dim)
            if level is not None:
                self.levels[dim] = level
        if rule.risk is not None:
            self.risk = rule.risk
        self.note(rule.recommendation)

    def raise_to(self, rule: DimensionRule) -> None:
        """Raise dimensions to the rule's levels; never lowers."""
        for dim in _DIMENSIONS:
            level = getattr(rule, dim)
            if level is not None and level.rank > self.levels[dim].rank:
                self.levels[dim] = level
        if rule.risk is not None and rule.risk.rank > self.risk.rank:
            self.risk = rule.risk
        self.note(rule.recommendation)

    def note(self, text: str) -> None:
        if text and text not in self.notes:
            self.notes.append(text)

    def to_score(self) -> ImpactScore:
        return ImpactScore(
            security_impact=self.levels["security"],
            cost_impact=self.levels["cost"],
            compliance_impact=self.levels["compliance"],
            operational_overhead=self.levels["overhead"],
            risk_level=self.risk,
            recommendation=" ".join(self.notes),
        )


class ImpactClassifier:
    """
    Scores a policy assignment across security, cost, compliance and
    operational overhead.

    Rules are applied in a fixed order:
    1. Base score by effect (Disabled stops here with everything None)
    2. Category inference for Parameterised/Multiple effects
    3. Display-name keyword rules, which only raise dimensions
    4. DoNotEnforce override (security None, compliance Low)
    5. Risk bonus when the effect or member-effect summary contains
       Deny, DeployIfNotExists or Modify as a substring (DenyAction counts)

    The result depends only on the record and the rule tables, so the same
    record always yields the same score.
    """

    def __init__(self, tables: Optional[ImpactRuleTables] = None):
        """
        Initialize the classifier.

        Args:
            tables: Rule tables; the run-wide tables from get_impact_rules() when None
        """
        self.tables = tables or get_impact_rules()
        self._effect_index = {
            effect.lower(): rule for rule in self.tables.effect_rules for effect in rule.effects
        }
        self._parameterised = {e.lower() for e in self.tables.parameterised_effects}
        self._keyword_patterns = [
            (re.compile(rule.pattern, re.IGNORECASE), rule) for rule in self.tables.keyword_rules
        ]
        bonus_keywords = [re.escape(k) for k in self.tables.risk_bonus_keywords if k]
        self._risk_bonus_pattern = (
            re.compile("|".join(bonus_keywords), re.IGNORECASE)
            if bonus_keywords
            else None
        )

    def classify(self, record: PolicyAssignmentRecord) -> ImpactScore:
        """
        Score one assignment. Never raises.

        Args:
            record: Normalized assignment with resolved definition metadata

        Returns:
            ImpactScore; the default score if the record cannot be scored
        """
        try:
            return self._classify(record)
        except Exception as e:
            logger.warning(f"Failed to classify assignment {getattr(record, 'name', '?')}: {e}")
            return _ScoreState(self.tables.default).to_score()

    def classify_all(self, records: Iterable[PolicyAssignmentRecord]) -> list[ScoredAssignment]:
        """Score many assignments, preserving input order."""
        return [ScoredAssignment(record=r, score=self.classify(r)) for r in records]

    def _classify(self, record: PolicyAssignmentRecord) -> ImpactScore:
        state = _ScoreState(self.tables.default)
        effect = (record.effect or "").strip()

        # 1. Base by effect
        effect_rule = self._effect_index.get(effect.lower())
        if effect_rule is not None:
            state.assign(effect_rule)
            if effect_rule.terminal:
                return state.to_score()
        # 2. Parameterised/Multiple effects are inferred from the category
        elif effect.lower() in self._parameterised:
            self._apply_category_inference(state, record.category)
        else:
            if effect:
                logger.debug(f"Unknown effect '{effect}' on {record.name}; using default score")
            else:
                logger.warning(f"Assignment {record.name} has no effect; using default score")
            state.note(self.tables.unknown_effect_recommendation)

        # 3. Keyword rules against the display name only
        display_name = record.display_name or ""
        for pattern, rule in self._keyword_patterns:
            if pattern.search(display_name):
                state.raise_to(rule)

        # 4. Enforcement override
        if _is_do_not_enforce(record.enforcement_mode):
            state.levels["security"] = ImpactLevel.NONE
            state.levels["compliance"] = ImpactLevel.LOW
            state.note(self.tables.not_enforced_notice)

        # 5. Risk bonus, also for initiative summaries like "Deny, Audit"
        effect_text = f"{effect} {record.effect_summary or ''}"
        if self._risk_bonus_pattern and self._risk_bonus_pattern.search(effect_text):
            state.risk = _lower_risk(state.risk)

        return state.to_score()

    def _apply_category_inference(self, state: _ScoreState, category: str) -> None:
        tables = self.tables
        state.assign(tables.parameterised_base)

        key = (category or "").strip().lower()
        category_rule = _match_category(tables.category_rules, key)
        state.assign(category_rule or tables.category_default)

        overhead_rule = _match_category(tables.overhead_rules, key)
        if overhead_rule is not None and overhead_rule.overhead is not None:
            state.levels["overhead"] = overhead_rule.overhead
        else:
            state.levels["overhead"] = tables.overhead_default


def _match_category(rules, category_key: str):
    for rule in rules:
        if category_key in (c.lower() for c in rule.categories):
            return rule
    return None


def _is_do_not_enforce(mode: str) -> bool:
    return (mode or "").strip().lower() == EnforcementMode.DO_NOT_ENFORCE.value.lower()


def _lower_risk(risk: RiskLevel) -> RiskLevel:
    if risk == RiskLevel.HIGH:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def classify(
    record: PolicyAssignmentRecord, tables: Optional[ImpactRuleTables] = None
) -> ImpactScore:
    """Classify a record with the given or run-wide rule tables."""
    return ImpactClassifier(tables).classify(record)
