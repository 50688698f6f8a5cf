"""
Scoring rule data models for the Lead Scoring service.
"""

from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr


Record = Dict[str, Any]

MIN_SCORE = 0
MAX_SCORE = 100


class ConditionOperator(str, Enum):
    """Condition operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IN = "in"
    NOT_IN = "not_in"


class ConditionLogic(str, Enum):
    """Bucket a condition is combined in."""
    AND = "and"
    OR = "or"


@dataclass
class Condition:
    """A single predicate over one record field."""
    field: str
    operator: Union[ConditionOperator, str]
    value: Any = None
    logic: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        operator = self.operator.value if isinstance(self.operator, ConditionOperator) else self.operator
        data = {"field": self.field, "operator": operator, "value": self.value}
        if self.logic is not None:
            data["logic"] = self.logic
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        # Unknown operators are kept verbatim; they never match.
        raw_operator = data.get("operator")
        try:
            operator = ConditionOperator(raw_operator)
        except ValueError:
            operator = raw_operator
        return cls(
            field=data["field"],
            operator=operator,
            value=data.get("value"),
            logic=data.get("logic"),
        )


@dataclass
class Rule:
    """Scoring rule."""
    rule_id: str
    name: str
    description: Optional[str] = None
    conditions: List[Condition] = field(default_factory=list)
    score: int = 0
    is_active: bool = True
    priority: int = 100
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class LeadRecord:
    """A lead as held by the record store."""
    record_id: str
    fields: Record = field(default_factory=dict)
    score: int = 0


@dataclass
class AppliedRule:
    """Audit entry for one rule considered during scoring."""
    rule_id: str
    rule_name: str
    score: int
    matched: bool


@dataclass
class ScoreEvaluation:
    """Result of scoring one record."""
    record_id: str
    current_score: int
    new_score: int
    applied_rules: List[AppliedRule] = field(default_factory=list)
    total_score_change: int = 0


@dataclass
class ConditionResult:
    """Outcome of one condition evaluated in isolation."""
    field: str
    operator: str
    expected_value: Any
    actual_value: Any
    matched: bool


@dataclass
class RuleTestResult:
    """Result of running a single rule against test data."""
    rule_id: str
    rule_name: str
    matched: bool
    score: int
    condition_results: List[ConditionResult] = field(default_factory=list)


class ConditionModel(BaseModel):
    """Validated condition payload."""
    field: str = Field(..., min_length=1, description="Record field to inspect")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: Union[StrictStr, StrictInt, StrictFloat, List[StrictStr]] = Field(..., description="Comparison operand")
    logic: Optional[ConditionLogic] = Field(None, description="and (default) or or")

    def to_condition(self) -> Condition:
        return Condition(
            field=self.field,
            operator=self.operator,
            value=self.value,
            logic=self.logic.value if self.logic else None,
        )


class RuleCreateRequest(BaseModel):
    """Request model for creating a rule."""
    name: str = Field(..., min_length=1, max_length=255, description="Rule name")
    description: Optional[str] = Field(None, description="Rule description")
    conditions: List[ConditionModel] = Field(..., min_length=1, description="Rule conditions")
    score: int = Field(..., ge=-100, le=100, description="Score delta when matched")
    priority: int = Field(100, ge=1, le=1000, description="Rule priority, lower first")
    created_by: str = Field(..., min_length=1, description="Author user ID")


class RuleUpdateRequest(BaseModel):
    """Request model for updating a rule."""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Rule name")
    description: Optional[str] = Field(None, description="Rule description")
    conditions: Optional[List[ConditionModel]] = Field(None, min_length=1, description="Rule conditions")
    score: Optional[int] = Field(None, ge=-100, le=100, description="Score delta when matched")
    priority: Optional[int] = Field(None, ge=1, le=1000, description="Rule priority")
    is_active: Optional[bool] = Field(None, description="Whether rule is active")


class RuleSortField(str, Enum):
    NAME = "name"
    SCORE = "score"
    PRIORITY = "priority"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RuleFilter(BaseModel):
    """Filters for rule listing."""
    keyword: Optional[str] = None
    is_active: Optional[bool] = None
    created_by: Optional[str] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None


class RuleListQuery(BaseModel):
    """Query model for rule listing."""
    page: int = Field(1, ge=1, description="Page number")
    limit: int = Field(50, ge=1, le=100, description="Items per page")
    filter: RuleFilter = Field(default_factory=RuleFilter)
    sort_by: RuleSortField = Field(RuleSortField.CREATED_AT)
    sort_order: SortOrder = Field(SortOrder.ASC)


@dataclass
class RuleListResult:
    """A page of rules."""
    items: List[Rule]
    total: int
    page: int
    limit: int
