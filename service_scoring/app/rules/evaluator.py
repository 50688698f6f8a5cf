"""
Combination of a rule's conditions into a single match decision.
"""

from typing import List, Optional, Sequence

from .conditions import ConditionEvaluator
from .models import Condition, ConditionLogic, Record


class RuleEvaluator:
    """Combines conditions using a flat AND-group / OR-group model.

    Conditions tagged ``"or"`` form the OR-group; every other condition
    belongs to the AND-group. A rule matches when all AND conditions hold and,
    if there are any OR conditions, at least one of them holds. A rule without
    conditions never matches.
    """

    def __init__(self, condition_evaluator: Optional[ConditionEvaluator] = None):
        self.condition_evaluator = condition_evaluator or ConditionEvaluator()

    def evaluate_conditions(self, conditions: Sequence[Condition], record: Record) -> bool:
        if not conditions:
            return False

        and_group: List[Condition] = []
        or_group: List[Condition] = []
        for condition in conditions:
            if condition.logic == ConditionLogic.OR.value:
                or_group.append(condition)
            else:
                and_group.append(condition)

        and_result = all(self.condition_evaluator.evaluate(c, record) for c in and_group)
        or_result = not or_group or any(self.condition_evaluator.evaluate(c, record) for c in or_group)

        return and_result and or_result
