"""
Shared fixtures and test data factory for Lead Scoring tests.
"""

import pytest
from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta

from service_scoring.app.rules.models import Condition, LeadRecord, Rule


class TestDataFactory:
    """Factory for creating test data."""

    __test__ = False

    @staticmethod
    def create_condition(field: str, operator: str, value: Any, logic: Optional[str] = None) -> Condition:
        return Condition.from_dict({"field": field, "operator": operator, "value": value, "logic": logic})

    @staticmethod
    def create_rule(rule_id: str, score: int, conditions: List[Condition], priority: int = 100,
                    name: Optional[str] = None, is_active: bool = True,
                    created_by: str = "admin") -> Rule:
        return Rule(
            rule_id=rule_id,
            name=name or f"Rule {rule_id}",
            description=f"Test rule {rule_id}",
            conditions=conditions,
            score=score,
            is_active=is_active,
            priority=priority,
            created_by=created_by
        )

    @staticmethod
    def create_test_rules() -> List[Rule]:
        """Create a representative rule set."""
        c = TestDataFactory.create_condition
        base = datetime(2024, 1, 1)
        rules = [
            TestDataFactory.create_rule(
                "rule-enterprise", 30,
                [c("company", "contains", "corp"), c("industry", "in", ["software", "finance"])],
                priority=10, name="Enterprise software"
            ),
            TestDataFactory.create_rule(
                "rule-web", 20,
                [c("source", "equals", "website", "or"), c("source", "equals", "referral", "or")],
                priority=20, name="Inbound source"
            ),
            TestDataFactory.create_rule(
                "rule-exec", 25,
                [c("title", "starts_with", "chief")],
                priority=30, name="Executive title"
            ),
            TestDataFactory.create_rule(
                "rule-freemail", -15,
                [c("email", "ends_with", "@gmail.com")],
                priority=40, name="Free email domain"
            ),
            TestDataFactory.create_rule(
                "rule-retired", 50,
                [c("status", "equals", "new")],
                priority=5, name="Retired rule", is_active=False
            ),
        ]
        for offset, rule in enumerate(rules):
            rule.created_at = base + timedelta(days=offset)
            rule.updated_at = rule.created_at
        return rules

    @staticmethod
    def create_test_leads() -> List[LeadRecord]:
        """Create test leads."""
        return [
            LeadRecord(
                record_id="lead-1",
                fields={
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "email": "ada@analytical.com",
                    "company": "Analytical Corp",
                    "title": "Chief Engineer",
                    "industry": "software",
                    "source": "website",
                    "status": "new",
                    "tags": ["vip"],
                },
                score=0
            ),
            LeadRecord(
                record_id="lead-2",
                fields={
                    "first_name": "Grace",
                    "last_name": "Hopper",
                    "email": "grace@gmail.com",
                    "company": "Navy",
                    "title": "Rear Admiral",
                    "industry": "government",
                    "source": "event",
                    "status": "contacted",
                    "tags": [],
                },
                score=40
            ),
            LeadRecord(
                record_id="lead-3",
                fields={
                    "first_name": "Alan",
                    "last_name": "Turing",
                    "email": "alan@bletchley.org",
                    "company": "Bletchley Corp",
                    "title": "Researcher",
                    "industry": "finance",
                    "source": "referral",
                    "status": "qualified",
                },
                score=10
            ),
        ]

    @staticmethod
    def lead_fields(leads: List[LeadRecord], record_id: str) -> Dict[str, Any]:
        return next(lead.fields for lead in leads if lead.record_id == record_id)


@pytest.fixture
def factory():
    """Test data factory."""
    return TestDataFactory


@pytest.fixture
def sample_rules():
    """Representative rule set, one of them inactive."""
    return TestDataFactory.create_test_rules()


@pytest.fixture
def sample_leads():
    """Three leads with differing profiles."""
    return TestDataFactory.create_test_leads()
