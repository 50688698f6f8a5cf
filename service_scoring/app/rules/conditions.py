"""
Single-condition evaluation for the Lead Scoring service.
"""

import math
import re
from typing import Any, Callable, Dict

from shared.logging import get_logger
from .models import Condition, ConditionOperator, Record

# Accepted numeric text: signed decimals, unsigned 0x/0o/0b literals, Infinity.
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_RADIX = re.compile(r"0(?:[xX](?P<hex>[0-9a-fA-F]+)|[oO](?P<oct>[0-7]+)|[bB](?P<bin>[01]+))")
_INFINITY = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def field_value(record: Record, field: str) -> Any:
    """Raw value of a record field; absent fields read as None."""
    return record.get(field)


def as_text(value: Any) -> str:
    """Coerce a record or operand value to comparison text.

    Falsy values (None, False, 0, "", empty lists) become the empty string.
    """
    if not value:
        return ""
    return _render(value)


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_render(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def as_number(value: Any) -> float:
    """Coerce a value to a number; missing or non-numeric values become 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return 0.0
        return float(value)
    if isinstance(value, str):
        return parse_number(value.strip())
    return 0.0


def parse_number(text: str) -> float:
    """Parse numeric text; anything else (including "inf" or "1_000") is 0."""
    if text in _INFINITY:
        return _INFINITY[text]
    if _DECIMAL.fullmatch(text):
        return float(text)
    match = _RADIX.fullmatch(text)
    if match:
        if match.group("hex"):
            return float(int(match.group("hex"), 16))
        if match.group("oct"):
            return float(int(match.group("oct"), 8))
        return float(int(match.group("bin"), 2))
    return 0.0


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that never treats booleans as numbers."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


class ConditionEvaluator:
    """Evaluates one condition against one record."""

    def __init__(self):
        self.logger = get_logger("lead_scoring.conditions")
        self._operators: Dict[ConditionOperator, Callable[[Any, Any], bool]] = {
            ConditionOperator.EQUALS: self._equals,
            ConditionOperator.NOT_EQUALS: self._not_equals,
            ConditionOperator.CONTAINS: self._contains,
            ConditionOperator.NOT_CONTAINS: self._not_contains,
            ConditionOperator.STARTS_WITH: self._starts_with,
            ConditionOperator.ENDS_WITH: self._ends_with,
            ConditionOperator.GREATER_THAN: self._greater_than,
            ConditionOperator.LESS_THAN: self._less_than,
            ConditionOperator.IN: self._in,
            ConditionOperator.NOT_IN: self._not_in,
        }

    def evaluate(self, condition: Condition, record: Record) -> bool:
        """Evaluate a single condition. Never raises."""
        try:
            try:
                operator = ConditionOperator(condition.operator)
            except ValueError:
                self.logger.warning("Unknown condition operator", operator=condition.operator,
                                    field=condition.field)
                return False

            actual = field_value(record, condition.field)
            return self._operators[operator](actual, condition.value)

        except Exception as e:
            self.logger.error("Error evaluating condition", field=condition.field, error=str(e))
            return False

    @staticmethod
    def _equals(actual: Any, expected: Any) -> bool:
        return strict_equals(actual, expected)

    @staticmethod
    def _not_equals(actual: Any, expected: Any) -> bool:
        return not strict_equals(actual, expected)

    @staticmethod
    def _contains(actual: Any, expected: Any) -> bool:
        return as_text(expected).lower() in as_text(actual).lower()

    @staticmethod
    def _not_contains(actual: Any, expected: Any) -> bool:
        return as_text(expected).lower() not in as_text(actual).lower()

    @staticmethod
    def _starts_with(actual: Any, expected: Any) -> bool:
        return as_text(actual).lower().startswith(as_text(expected).lower())

    @staticmethod
    def _ends_with(actual: Any, expected: Any) -> bool:
        return as_text(actual).lower().endswith(as_text(expected).lower())

    @staticmethod
    def _greater_than(actual: Any, expected: Any) -> bool:
        return as_number(actual) > as_number(expected)

    @staticmethod
    def _less_than(actual: Any, expected: Any) -> bool:
        return as_number(actual) < as_number(expected)

    @staticmethod
    def _in(actual: Any, expected: Any) -> bool:
        if isinstance(expected, (list, tuple)):
            return as_text(actual) in expected
        return False

    @staticmethod
    def _not_in(actual: Any, expected: Any) -> bool:
        # Asymmetric with _in: a non-list operand excludes nothing.
        if isinstance(expected, (list, tuple)):
            return as_text(actual) not in expected
        return True
