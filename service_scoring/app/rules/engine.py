"""
Score evaluation engine for the Lead Scoring service.
"""

from typing import List, Optional, Sequence

from shared.logging import get_logger
from .evaluator import RuleEvaluator
from .models import (
    AppliedRule, MAX_SCORE, MIN_SCORE, Record, Rule, ScoreEvaluation
)


def clamp(value: int, lo: int = MIN_SCORE, hi: int = MAX_SCORE) -> int:
    return max(lo, min(hi, value))


def order_by_priority(rules: Sequence[Rule]) -> List[Rule]:
    """Active rules in ascending priority; ties keep their input order."""
    return sorted((rule for rule in rules if rule.is_active), key=lambda r: r.priority)


class ScoringEngine:
    """Runs a rule set against a record and produces a bounded score.

    The engine is pure: it neither fetches rules nor persists scores, so a
    single instance can serve concurrent callers as long as each call brings
    its own rule snapshot and record.
    """

    def __init__(self, rule_evaluator: Optional[RuleEvaluator] = None):
        self.logger = get_logger("lead_scoring.engine")
        self.rule_evaluator = rule_evaluator or RuleEvaluator()

    def evaluate_score(self, record_id: str, record: Record, current_score: int,
                       rules: Sequence[Rule]) -> ScoreEvaluation:
        """Score ``record`` against ``rules`` starting from ``current_score``."""
        applied_rules: List[AppliedRule] = []
        total = 0

        for rule in order_by_priority(rules):
            matched = self.rule_evaluator.evaluate_conditions(rule.conditions, record)
            applied_rules.append(AppliedRule(
                rule_id=rule.rule_id,
                rule_name=rule.name,
                score=rule.score,
                matched=matched
            ))
            if matched:
                total += rule.score

        new_score = clamp(total)

        self.logger.debug(
            "Score computed",
            record_id=record_id,
            raw_total=total,
            new_score=new_score,
            rules_considered=len(applied_rules)
        )

        return ScoreEvaluation(
            record_id=record_id,
            current_score=current_score,
            new_score=new_score,
            applied_rules=applied_rules,
            total_score_change=new_score - current_score
        )

    def calculate_score(self, record: Record, rules: Sequence[Rule]) -> int:
        """Clamped score for ``record`` without an audit trail."""
        total = sum(
            rule.score for rule in order_by_priority(rules)
            if self.rule_evaluator.evaluate_conditions(rule.conditions, record)
        )
        return clamp(total)
