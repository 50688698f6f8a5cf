"""
Store interfaces and in-memory implementations for rules and lead records.

Stores raise ``LeadScoringException`` subclasses on failure and return
``None`` for lookups that find nothing; the service layer turns both into
result values.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Iterable

from shared.errors import NotFoundError
from shared.logging import get_logger
from ..rules.models import (
    LeadRecord, Rule, RuleListQuery, RuleListResult, RuleSortField, SortOrder
)


class RuleStore(ABC):
    """Source of scoring rules."""

    @abstractmethod
    async def list_active_rules(self) -> List[Rule]:
        """Active rules ordered by ascending priority, then name."""

    @abstractmethod
    async def find_rule_by_id(self, rule_id: str) -> Optional[Rule]:
        """Rule with ``rule_id`` or None."""

    @abstractmethod
    async def list_rules(self, query: RuleListQuery) -> RuleListResult:
        """Filtered, sorted page of rules."""

    @abstractmethod
    async def save_rule(self, rule: Rule) -> Rule:
        """Insert or replace a rule."""

    @abstractmethod
    async def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule; False if it did not exist."""


class RecordStore(ABC):
    """Source and sink of lead records and their scores."""

    @abstractmethod
    async def get_record(self, record_id: str) -> Optional[LeadRecord]:
        """Lead with its scored fields and current score, or None."""

    @abstractmethod
    async def list_record_ids(self) -> List[str]:
        """IDs of every lead."""

    @abstractmethod
    async def update_score(self, record_id: str, score: int) -> None:
        """Persist a new score for a lead."""


def _sort_key(sort_by: RuleSortField):
    if sort_by == RuleSortField.NAME:
        return lambda r: r.name
    if sort_by == RuleSortField.SCORE:
        return lambda r: r.score
    if sort_by == RuleSortField.PRIORITY:
        return lambda r: r.priority
    if sort_by == RuleSortField.UPDATED_AT:
        return lambda r: r.updated_at
    return lambda r: r.created_at


def apply_rule_query(rules: Iterable[Rule], query: RuleListQuery) -> RuleListResult:
    """Filter, sort and paginate rules in memory."""
    f = query.filter
    matching = []
    for rule in rules:
        if f.keyword and f.keyword.lower() not in rule.name.lower():
            continue
        if f.is_active is not None and rule.is_active != f.is_active:
            continue
        if f.created_by and rule.created_by != f.created_by:
            continue
        if f.min_score is not None and rule.score < f.min_score:
            continue
        if f.max_score is not None and rule.score > f.max_score:
            continue
        matching.append(rule)

    matching.sort(key=_sort_key(query.sort_by), reverse=(query.sort_order == SortOrder.DESC))

    start_idx = (query.page - 1) * query.limit
    end_idx = start_idx + query.limit
    return RuleListResult(
        items=matching[start_idx:end_idx],
        total=len(matching),
        page=query.page,
        limit=query.limit
    )


class InMemoryRuleStore(RuleStore):
    """Dict-backed rule store.

    Returned rules are copies, so callers can't mutate stored state.
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self.logger = get_logger("lead_scoring.persistence.memory")
        self._rules: Dict[str, Rule] = {}
        self._lock = asyncio.Lock()
        for rule in rules or []:
            self._rules[rule.rule_id] = copy.deepcopy(rule)

    async def list_active_rules(self) -> List[Rule]:
        active = [r for r in self._rules.values() if r.is_active]
        active.sort(key=lambda r: (r.priority, r.name))
        return copy.deepcopy(active)

    async def find_rule_by_id(self, rule_id: str) -> Optional[Rule]:
        rule = self._rules.get(rule_id)
        return copy.deepcopy(rule) if rule else None

    async def list_rules(self, query: RuleListQuery) -> RuleListResult:
        result = apply_rule_query(self._rules.values(), query)
        result.items = copy.deepcopy(result.items)
        return result

    async def save_rule(self, rule: Rule) -> Rule:
        async with self._lock:
            self._rules[rule.rule_id] = copy.deepcopy(rule)
        self.logger.info("Rule saved", rule_id=rule.rule_id, name=rule.name)
        return copy.deepcopy(rule)

    async def delete_rule(self, rule_id: str) -> bool:
        async with self._lock:
            if rule_id not in self._rules:
                return False
            del self._rules[rule_id]
        self.logger.info("Rule deleted", rule_id=rule_id)
        return True


class InMemoryRecordStore(RecordStore):
    """Dict-backed lead store."""

    def __init__(self, records: Optional[Iterable[LeadRecord]] = None):
        self._records: Dict[str, LeadRecord] = {}
        self.score_updated_at: Dict[str, datetime] = {}
        for record in records or []:
            self._records[record.record_id] = copy.deepcopy(record)

    async def get_record(self, record_id: str) -> Optional[LeadRecord]:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record else None

    async def list_record_ids(self) -> List[str]:
        return list(self._records.keys())

    async def update_score(self, record_id: str, score: int) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError("Lead not found", {"record_id": record_id})
        record.score = score
        self.score_updated_at[record_id] = datetime.now()
