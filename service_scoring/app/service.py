"""
Lead scoring service: the operations exposed to the application layer.
"""

import asyncio
import functools
from typing import Any, Dict, List, Optional, Sequence

from shared.config import ScoringConfig, get_config
from shared.errors import FetchFailedError, LeadScoringException, NotFoundError, PersistenceError
from shared.logging import configure_logging, get_logger, request_context
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.result import OperationResult

from .bulk.recompute import BulkRecomputeCoordinator, BulkRecomputeReport
from .persistence.postgres import PostgreSQLPool, PostgreSQLRecordStore, PostgreSQLRuleStore
from .persistence.stores import RecordStore, RuleStore
from .rules.engine import ScoringEngine
from .rules.models import Record, Rule, RuleTestResult, ScoreEvaluation
from .rules.tester import RuleTester


def _as_failure(error: Exception, wrapper: type, message: str, **details) -> LeadScoringException:
    """Keep typed store errors, wrap anything else."""
    if isinstance(error, LeadScoringException):
        return error
    return wrapper(message, {**details, "error": str(error)})


def request_scoped(func):
    """Run a service operation under its own request ID."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        with request_context():
            return await func(*args, **kwargs)
    return wrapper


class ScoringService:
    """Fetches rules and leads, runs the engine and persists scores."""

    def __init__(self, rule_store: RuleStore, record_store: RecordStore,
                 engine: Optional[ScoringEngine] = None,
                 metrics: Optional[MetricsCollector] = None,
                 bulk_concurrency: int = 1):
        self.logger = get_logger("lead_scoring.service")
        self.rule_store = rule_store
        self.record_store = record_store
        self.engine = engine or ScoringEngine()
        self.tester = RuleTester(self.engine.rule_evaluator)
        self.metrics = metrics or get_metrics_collector("lead_scoring")
        self.bulk = BulkRecomputeCoordinator(
            record_store,
            engine=self.engine,
            concurrency=bulk_concurrency,
            metrics=self.metrics
        )

    @request_scoped
    async def evaluate_lead_score(self, record_id: str) -> OperationResult[ScoreEvaluation]:
        """Score one lead against the active rules and store the new score."""
        with self.metrics.time_operation("score_evaluation_duration_seconds"):
            try:
                lead = await self.record_store.get_record(record_id)
            except Exception as e:
                return self._fail("evaluation", _as_failure(
                    e, FetchFailedError, "Failed to load lead", record_id=record_id))

            if lead is None:
                return self._fail("evaluation", NotFoundError("Lead not found", {"record_id": record_id}))

            try:
                rules = await self.rule_store.list_active_rules()
            except Exception as e:
                return self._fail("evaluation", _as_failure(
                    e, FetchFailedError, "Failed to find active scoring rules"))

            evaluation = self.engine.evaluate_score(record_id, lead.fields, lead.score, rules)

            try:
                await self.record_store.update_score(record_id, evaluation.new_score)
            except Exception as e:
                return self._fail("evaluation", _as_failure(
                    e, PersistenceError, "Failed to update lead score", record_id=record_id))

        self.metrics.record_evaluation("success")
        self.logger.info(
            "Lead score evaluated",
            record_id=record_id,
            previous_score=evaluation.current_score,
            new_score=evaluation.new_score,
            matched_rules=[r.rule_id for r in evaluation.applied_rules if r.matched]
        )
        return OperationResult.success(evaluation)

    @request_scoped
    async def test_rule(self, rule_id: str, test_data: Dict[str, Any]) -> OperationResult[RuleTestResult]:
        """Run one stored rule against ad-hoc data without touching any lead."""
        try:
            rule = await self.rule_store.find_rule_by_id(rule_id)
        except Exception as e:
            return self._fail("rule_test", _as_failure(
                e, FetchFailedError, "Failed to find scoring rule", rule_id=rule_id))

        if rule is None:
            return self._fail("rule_test", NotFoundError("Scoring rule not found", {"rule_id": rule_id}))

        result = self.tester.test_rule(rule, test_data)
        self.metrics.record_rule_test(result.matched)
        self.logger.debug("Rule tested", rule_id=rule_id, matched=result.matched, score=result.score)
        return OperationResult.success(result)

    @request_scoped
    async def calculate_score(self, record: Record,
                              rules: Optional[Sequence[Rule]] = None) -> OperationResult[int]:
        """Clamped score for arbitrary data; uses the active rules if none are given."""
        if rules is None:
            try:
                rules = await self.rule_store.list_active_rules()
            except Exception as e:
                return self._fail("calculation", _as_failure(
                    e, FetchFailedError, "Failed to find active scoring rules"))

        return OperationResult.success(self.engine.calculate_score(record, rules))

    @request_scoped
    async def bulk_update_scores(self, cancel_event: Optional[asyncio.Event] = None
                                 ) -> OperationResult[BulkRecomputeReport]:
        """Rescore every lead; per-lead failures are reported, not raised."""
        try:
            record_ids: List[str] = await self.record_store.list_record_ids()
            rules = await self.rule_store.list_active_rules()
        except Exception as e:
            return self._fail("bulk", _as_failure(
                e, FetchFailedError, "Failed to bulk update lead scores"))

        report = await self.bulk.recompute_all(record_ids, rules, cancel_event=cancel_event)
        return OperationResult.success(report)

    def _fail(self, operation: str, error: LeadScoringException) -> OperationResult:
        self.logger.warning("Scoring operation failed", operation=operation,
                            code=error.code, error=error.message, details=error.details)
        self.metrics.record_error(error.code)
        if operation == "evaluation":
            self.metrics.record_evaluation("failure")
        return OperationResult.failure(error)


async def create_scoring_service(config: Optional[ScoringConfig] = None):
    """Build a service wired to PostgreSQL from configuration.

    Returns the service and the started pool; the caller stops the pool.
    """
    config = config or get_config()
    configure_logging("lead_scoring", config.log_level)

    db = PostgreSQLPool(
        config.postgres_dsn,
        min_size=config.postgres_min_pool_size,
        max_size=config.postgres_max_pool_size
    )
    await db.start()

    metrics = get_metrics_collector("lead_scoring")
    if config.enable_metrics_server:
        metrics.start_metrics_server(config.metrics_port)

    service = ScoringService(
        PostgreSQLRuleStore(db),
        PostgreSQLRecordStore(db),
        metrics=metrics,
        bulk_concurrency=config.bulk_concurrency
    )
    return service, db
