"""
Unit tests for AND/OR condition combination.
"""

import pytest

from service_scoring.app.rules.evaluator import RuleEvaluator


class TestRuleEvaluator:
    """Test cases for RuleEvaluator."""

    @pytest.fixture
    def evaluator(self):
        return RuleEvaluator()

    @pytest.fixture
    def status_and_source(self, factory):
        return [
            factory.create_condition("status", "equals", "new", "and"),
            factory.create_condition("source", "equals", "web", "or"),
        ]

    def test_and_true_or_false(self, evaluator, status_and_source):
        assert evaluator.evaluate_conditions(status_and_source, {"status": "new", "source": "email"}) is False

    def test_and_true_or_true(self, evaluator, status_and_source):
        assert evaluator.evaluate_conditions(status_and_source, {"status": "new", "source": "web"}) is True

    def test_and_false_overrides_or(self, evaluator, status_and_source):
        assert evaluator.evaluate_conditions(status_and_source, {"status": "old", "source": "web"}) is False

    @pytest.mark.parametrize("record", [{}, {"status": "new"}, {"anything": 1}])
    def test_empty_conditions_never_match(self, evaluator, record):
        assert evaluator.evaluate_conditions([], record) is False

    def test_and_group_requires_all(self, evaluator, factory):
        conditions = [
            factory.create_condition("status", "equals", "new"),
            factory.create_condition("industry", "equals", "software"),
        ]
        assert evaluator.evaluate_conditions(conditions, {"status": "new", "industry": "software"}) is True
        assert evaluator.evaluate_conditions(conditions, {"status": "new", "industry": "retail"}) is False

    def test_or_group_requires_any(self, evaluator, factory):
        conditions = [
            factory.create_condition("source", "equals", "website", "or"),
            factory.create_condition("source", "equals", "referral", "or"),
        ]
        assert evaluator.evaluate_conditions(conditions, {"source": "referral"}) is True
        assert evaluator.evaluate_conditions(conditions, {"source": "event"}) is False

    def test_missing_logic_defaults_to_and(self, evaluator, factory):
        conditions = [
            factory.create_condition("status", "equals", "new", None),
            factory.create_condition("source", "equals", "web", "or"),
        ]
        assert evaluator.evaluate_conditions(conditions, {"status": "other", "source": "web"}) is False

    def test_unrecognised_logic_is_treated_as_and(self, evaluator, factory):
        conditions = [
            factory.create_condition("status", "equals", "new", "xor"),
            factory.create_condition("source", "equals", "web", "or"),
        ]
        assert evaluator.evaluate_conditions(conditions, {"status": "old", "source": "web"}) is False

    def test_unknown_operator_in_and_group_blocks_match(self, evaluator, factory):
        conditions = [
            factory.create_condition("status", "equals", "new"),
            factory.create_condition("status", "sounds_like", "nu"),
        ]
        assert evaluator.evaluate_conditions(conditions, {"status": "new"}) is False
