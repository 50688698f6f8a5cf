"""
Unit tests for the scoring engine.
"""

import random

import pytest

from service_scoring.app.rules.engine import ScoringEngine, clamp


class TestScoringEngine:
    """Test cases for ScoringEngine."""

    @pytest.fixture
    def engine(self):
        return ScoringEngine()

    def test_evaluate_sample_lead(self, engine, sample_rules, sample_leads, factory):
        record = factory.lead_fields(sample_leads, "lead-1")

        evaluation = engine.evaluate_score("lead-1", record, 0, sample_rules)

        assert evaluation.record_id == "lead-1"
        assert evaluation.current_score == 0
        assert evaluation.new_score == 75
        assert evaluation.total_score_change == 75
        assert [r.rule_id for r in evaluation.applied_rules] == [
            "rule-enterprise", "rule-web", "rule-exec", "rule-freemail"
        ]
        assert [r.matched for r in evaluation.applied_rules] == [True, True, True, False]

    def test_applied_rule_reports_configured_score_even_unmatched(self, engine, sample_rules, sample_leads, factory):
        record = factory.lead_fields(sample_leads, "lead-1")

        evaluation = engine.evaluate_score("lead-1", record, 0, sample_rules)

        freemail = evaluation.applied_rules[-1]
        assert freemail.matched is False
        assert freemail.score == -15
        assert freemail.rule_name == "Free email domain"

    def test_inactive_rules_are_skipped(self, engine, sample_rules):
        evaluation = engine.evaluate_score("r", {"status": "new"}, 0, sample_rules)

        assert "rule-retired" not in [r.rule_id for r in evaluation.applied_rules]
        assert evaluation.new_score == 0

    def test_score_clamped_to_maximum(self, engine, factory):
        always = factory.create_condition("status", "equals", "new")
        rules = [factory.create_rule(f"r{i}", 50, [always], priority=i) for i in range(3)]

        evaluation = engine.evaluate_score("r", {"status": "new"}, 20, rules)

        assert evaluation.new_score == 100
        assert evaluation.total_score_change == 80

    def test_score_clamped_to_minimum(self, engine, factory):
        always = factory.create_condition("status", "equals", "new")
        rules = [factory.create_rule("neg", -20, [always])]

        evaluation = engine.evaluate_score("r", {"status": "new"}, 35, rules)

        assert evaluation.new_score == 0
        assert evaluation.total_score_change == -35

    def test_score_bounds_hold_for_random_rule_sets(self, engine, factory):
        rng = random.Random(7)
        always = factory.create_condition("status", "equals", "new")
        for _ in range(50):
            rules = [
                factory.create_rule(f"r{i}", rng.randint(-100, 100), [always], priority=rng.randint(1, 1000))
                for i in range(rng.randint(0, 8))
            ]
            evaluation = engine.evaluate_score("r", {"status": "new"}, 50, rules)
            assert 0 <= evaluation.new_score <= 100

    def test_applied_rules_sorted_by_priority(self, engine, sample_rules, sample_leads, factory):
        record = factory.lead_fields(sample_leads, "lead-3")
        shuffled = list(sample_rules)
        random.Random(3).shuffle(shuffled)

        evaluation = engine.evaluate_score("lead-3", record, 10, shuffled)

        ids = [r.rule_id for r in evaluation.applied_rules]
        assert ids == ["rule-enterprise", "rule-web", "rule-exec", "rule-freemail"]
        assert evaluation.new_score == 50

    def test_equal_priorities_keep_input_order(self, engine, factory):
        always = factory.create_condition("status", "equals", "new")
        rules = [factory.create_rule(rule_id, 1, [always], priority=5) for rule_id in ("b", "a", "c")]

        evaluation = engine.evaluate_score("r", {"status": "new"}, 0, rules)

        assert [r.rule_id for r in evaluation.applied_rules] == ["b", "a", "c"]

    def test_evaluation_is_deterministic(self, engine, sample_rules, sample_leads, factory):
        record = factory.lead_fields(sample_leads, "lead-2")

        first = engine.evaluate_score("lead-2", record, 40, sample_rules)
        second = engine.evaluate_score("lead-2", record, 40, sample_rules)

        assert first == second
        assert first.new_score == 0
        assert first.total_score_change == -40

    def test_empty_condition_rule_never_contributes(self, engine, factory):
        rules = [factory.create_rule("empty", 40, [])]

        evaluation = engine.evaluate_score("r", {"status": "new"}, 0, rules)

        assert evaluation.applied_rules[0].matched is False
        assert evaluation.new_score == 0

    def test_no_rules(self, engine):
        evaluation = engine.evaluate_score("r", {}, 30, [])

        assert evaluation.applied_rules == []
        assert evaluation.new_score == 0
        assert evaluation.total_score_change == -30

    def test_calculate_score(self, engine, sample_rules, sample_leads, factory):
        assert engine.calculate_score(factory.lead_fields(sample_leads, "lead-1"), sample_rules) == 75
        assert engine.calculate_score(factory.lead_fields(sample_leads, "lead-2"), sample_rules) == 0


@pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (55, 55), (100, 100), (150, 100)])
def test_clamp(value, expected):
    assert clamp(value) == expected
