"""
Rule administration use-cases: authoring, activation and ordering.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shared.errors import (
    FetchFailedError, LeadScoringException, NotFoundError, PersistenceError, ValidationError
)
from shared.logging import get_logger
from shared.result import OperationResult

from .persistence.stores import RuleStore
from .rules.models import (
    Rule, RuleCreateRequest, RuleListQuery, RuleListResult, RuleUpdateRequest
)


PRIORITY_STEP = 10


def _validate(model: Type[BaseModel], payload: Any, message: str):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(message, {"errors": e.errors(include_url=False)})


class RuleAdministration:
    """Create, edit, toggle, delete, list and reorder scoring rules."""

    def __init__(self, rule_store: RuleStore):
        self.rule_store = rule_store
        self.logger = get_logger("lead_scoring.rules.admin")

    async def create_rule(self, request: Any) -> OperationResult[Rule]:
        try:
            data = _validate(RuleCreateRequest, request, "Invalid input for creating scoring rule")
            now = datetime.now()
            rule = Rule(
                rule_id=str(uuid.uuid4()),
                name=data.name,
                description=data.description,
                conditions=[c.to_condition() for c in data.conditions],
                score=data.score,
                is_active=True,
                priority=data.priority,
                created_by=data.created_by,
                created_at=now,
                updated_at=now
            )
            saved = await self.rule_store.save_rule(rule)
        except Exception as e:
            return self._fail("create", e, PersistenceError, "Failed to create scoring rule")

        self.logger.info("Scoring rule created", rule_id=saved.rule_id, name=saved.name)
        return OperationResult.success(saved)

    async def update_rule(self, rule_id: str, request: Any) -> OperationResult[Rule]:
        try:
            data = _validate(RuleUpdateRequest, request, "Invalid input for updating scoring rule")
            rule = await self._require(rule_id)

            changes: Dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"conditions"})
            for key, value in changes.items():
                if value is not None:
                    setattr(rule, key, value)
            if data.conditions is not None:
                rule.conditions = [c.to_condition() for c in data.conditions]
            rule.updated_at = datetime.now()

            saved = await self.rule_store.save_rule(rule)
        except Exception as e:
            return self._fail("update", e, PersistenceError, "Failed to update scoring rule")

        self.logger.info("Scoring rule updated", rule_id=rule_id, fields=sorted(changes))
        return OperationResult.success(saved)

    async def toggle_rule(self, rule_id: str, is_active: bool) -> OperationResult[Rule]:
        action = "activate" if is_active else "deactivate"
        try:
            rule = await self._require(rule_id)
            rule.is_active = is_active
            rule.updated_at = datetime.now()
            saved = await self.rule_store.save_rule(rule)
        except Exception as e:
            return self._fail(action, e, PersistenceError, f"Failed to {action} scoring rule")

        self.logger.info("Scoring rule toggled", rule_id=rule_id, is_active=is_active)
        return OperationResult.success(saved)

    async def delete_rule(self, rule_id: str) -> OperationResult[None]:
        try:
            await self._require(rule_id)
            if not await self.rule_store.delete_rule(rule_id):
                raise NotFoundError("Scoring rule not found", {"rule_id": rule_id})
        except Exception as e:
            return self._fail("delete", e, PersistenceError, "Failed to delete scoring rule")

        return OperationResult.success(None)

    async def list_rules(self, query: Optional[Any] = None) -> OperationResult[RuleListResult]:
        try:
            data = _validate(RuleListQuery, query or {}, "Invalid query for listing scoring rules")
            result = await self.rule_store.list_rules(data)
        except Exception as e:
            return self._fail("list", e, FetchFailedError, "Failed to list scoring rules")

        return OperationResult.success(result)

    async def reorder_priorities(self, rule_ids: List[str]) -> OperationResult[List[Rule]]:
        """Assign priorities 10, 20, 30... following the order of ``rule_ids``."""
        try:
            rules = [await self._require(rule_id) for rule_id in rule_ids]
            now = datetime.now()
            saved = []
            for position, rule in enumerate(rules, start=1):
                rule.priority = position * PRIORITY_STEP
                rule.updated_at = now
                saved.append(await self.rule_store.save_rule(rule))
        except Exception as e:
            return self._fail("reorder", e, PersistenceError, "Failed to reorder priorities")

        self.logger.info("Scoring rule priorities reordered", rule_ids=rule_ids)
        return OperationResult.success(saved)

    async def _require(self, rule_id: str) -> Rule:
        try:
            rule = await self.rule_store.find_rule_by_id(rule_id)
        except LeadScoringException:
            raise
        except Exception as e:
            raise FetchFailedError("Failed to find scoring rule", {"rule_id": rule_id, "error": str(e)})
        if rule is None:
            raise NotFoundError("Scoring rule not found", {"rule_id": rule_id})
        return rule

    def _fail(self, operation: str, error: Exception, wrapper: Type[LeadScoringException],
              message: str) -> OperationResult:
        if not isinstance(error, LeadScoringException):
            error = wrapper(message, {"error": str(error)})
        self.logger.warning("Rule administration failed", operation=operation,
                            code=error.code, error=error.message)
        return OperationResult.failure(error)
