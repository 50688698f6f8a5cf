"""
Best-effort bulk recomputation of lead scores.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from shared.errors import EvaluationError, LeadScoringException, NotFoundError
from shared.logging import get_logger, job_context
from shared.metrics import MetricsCollector
from ..persistence.stores import RecordStore
from ..rules.engine import ScoringEngine, order_by_priority
from ..rules.models import Rule


@dataclass
class RecordFailure:
    """Why a record was skipped."""
    record_id: str
    stage: str
    code: str
    message: str


@dataclass
class BulkRecomputeReport:
    """Outcome of a bulk run."""
    job_id: Optional[str] = None
    updated_count: int = 0
    processed_count: int = 0
    failures: List[RecordFailure] = field(default_factory=list)
    cancelled: bool = False
    duration_ms: float = 0.0

    @property
    def skipped_count(self) -> int:
        return len(self.failures)


class BulkRecomputeCoordinator:
    """Applies the scoring engine to many records, isolating failures.

    Every record is fetched, scored and written on its own; a failure at any
    of those stages skips that record only. There is no cross-record
    atomicity, so a run may finish with some records updated and others not.
    """

    def __init__(self, record_store: RecordStore, engine: Optional[ScoringEngine] = None,
                 concurrency: int = 1, metrics: Optional[MetricsCollector] = None):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.record_store = record_store
        self.engine = engine or ScoringEngine()
        self.concurrency = concurrency
        self.metrics = metrics
        self.logger = get_logger("lead_scoring.bulk")

    async def recompute_all(self, record_ids: Iterable[str], active_rules: Sequence[Rule],
                            cancel_event: Optional[asyncio.Event] = None) -> BulkRecomputeReport:
        """Rescore every record in ``record_ids`` against one rule snapshot.

        ``concurrency`` workers pull ids from ``record_ids`` lazily, so only
        that many records are in flight at once. Setting ``cancel_event``
        stops new records from being started; records already in flight
        complete.
        """
        with job_context() as job_id:
            start_time = time.time()
            report = BulkRecomputeReport(job_id=job_id)
            rules = order_by_priority(active_rules)
            pending = iter(record_ids)

            self.logger.info("Bulk recompute started", rules=len(rules), concurrency=self.concurrency)

            async def worker():
                for record_id in pending:
                    if cancel_event is not None and cancel_event.is_set():
                        report.cancelled = True
                        return
                    await self._recompute_one(record_id, rules, report)

            await asyncio.gather(*(worker() for _ in range(self.concurrency)))

            report.duration_ms = (time.time() - start_time) * 1000

            self.logger.info(
                "Bulk recompute finished",
                processed=report.processed_count,
                updated=report.updated_count,
                skipped=report.skipped_count,
                cancelled=report.cancelled,
                duration_ms=report.duration_ms
            )
            if self.metrics:
                self.metrics.record_bulk_run("cancelled" if report.cancelled else "completed")

            return report

    async def _recompute_one(self, record_id: str, rules: List[Rule], report: BulkRecomputeReport):
        report.processed_count += 1

        try:
            lead = await self.record_store.get_record(record_id)
        except Exception as e:
            self._skip(report, record_id, "fetch", e)
            return

        if lead is None:
            self._skip(report, record_id, "fetch", NotFoundError("Lead not found", {"record_id": record_id}))
            return

        try:
            evaluation = self.engine.evaluate_score(record_id, lead.fields, lead.score, rules)
        except Exception as e:
            self._skip(report, record_id, "evaluate", EvaluationError(str(e), {"record_id": record_id}))
            return

        try:
            await self.record_store.update_score(record_id, evaluation.new_score)
        except Exception as e:
            self._skip(report, record_id, "persist", e)
            return

        report.updated_count += 1
        if self.metrics:
            self.metrics.record_bulk_record("updated")

    def _skip(self, report: BulkRecomputeReport, record_id: str, stage: str, error: Exception):
        if isinstance(error, LeadScoringException):
            code, message = error.code, error.message
        else:
            code, message = type(error).__name__, str(error)

        report.failures.append(RecordFailure(record_id=record_id, stage=stage, code=code, message=message))
        self.logger.warning("Record skipped", record_id=record_id, stage=stage, code=code, error=message)
        if self.metrics:
            self.metrics.record_bulk_record("skipped")
            self.metrics.record_error(code)
