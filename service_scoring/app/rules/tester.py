"""
Isolated rule testing with per-condition diagnostics.
"""

from typing import Optional

from .conditions import ConditionEvaluator, field_value
from .evaluator import RuleEvaluator
from .models import ConditionOperator, ConditionResult, Record, Rule, RuleTestResult


class RuleTester:
    """Runs one rule against ad-hoc data."""

    def __init__(self, rule_evaluator: Optional[RuleEvaluator] = None):
        self.rule_evaluator = rule_evaluator or RuleEvaluator()
        self.condition_evaluator: ConditionEvaluator = self.rule_evaluator.condition_evaluator

    def test_rule(self, rule: Rule, test_record: Record) -> RuleTestResult:
        """Evaluate ``rule`` and report each condition's own outcome.

        Condition results are computed independently of the AND/OR grouping,
        so they show which clauses passed even when the rule as a whole did
        not match.
        """
        matched = self.rule_evaluator.evaluate_conditions(rule.conditions, test_record)

        condition_results = [
            ConditionResult(
                field=condition.field,
                operator=(condition.operator.value
                          if isinstance(condition.operator, ConditionOperator)
                          else str(condition.operator)),
                expected_value=condition.value,
                actual_value=field_value(test_record, condition.field),
                matched=self.condition_evaluator.evaluate(condition, test_record)
            )
            for condition in rule.conditions
        ]

        return RuleTestResult(
            rule_id=rule.rule_id,
            rule_name=rule.name,
            matched=matched,
            score=rule.score if matched else 0,
            condition_results=condition_results
        )
