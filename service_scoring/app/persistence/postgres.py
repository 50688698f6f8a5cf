"""
PostgreSQL persistence layer for the Lead Scoring service.
"""

import json
from typing import Any, Dict, List, Optional

import asyncpg

from shared.errors import FetchFailedError, LeadScoringException, PersistenceError
from shared.logging import get_logger
from ..rules.models import (
    Condition, LeadRecord, Rule, RuleListQuery, RuleListResult, RuleSortField, SortOrder
)
from .stores import RecordStore, RuleStore


# Lead columns exposed to scoring rules, keyed by record field name.
LEAD_SCORED_FIELDS = {
    "first_name": "first_name",
    "last_name": "last_name",
    "email": "email",
    "phone": "phone",
    "company": "company",
    "title": "title",
    "industry": "industry",
    "source": "source",
    "status": "status",
    "tags": "tags",
}

RULE_SORT_COLUMNS = {
    RuleSortField.NAME: "name",
    RuleSortField.SCORE: "score",
    RuleSortField.PRIORITY: "priority",
    RuleSortField.CREATED_AT: "created_at",
    RuleSortField.UPDATED_AT: "updated_at",
}


class PostgreSQLPool:
    """Owns the asyncpg connection pool shared by the stores."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.logger = get_logger("lead_scoring.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=30
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise LeadScoringException("POSTGRES_START_FAILED", str(e))

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS scoring_rules (
                    id VARCHAR(255) PRIMARY KEY,
                    name VARCHAR(255) NOT NULL,
                    description TEXT,
                    condition JSONB NOT NULL DEFAULT '[]',
                    score INTEGER NOT NULL,
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    priority INTEGER NOT NULL DEFAULT 100,
                    created_by_user_id VARCHAR(255),
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS scoring_rules_name_idx ON scoring_rules(name);
            """)
            await conn.execute("""
                CREATE INDEX IF NOT EXISTS scoring_rules_is_active_idx ON scoring_rules(is_active);
            """)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS leads (
                    id VARCHAR(255) PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    email TEXT,
                    phone TEXT,
                    company TEXT,
                    title TEXT,
                    industry TEXT,
                    source TEXT,
                    status TEXT NOT NULL DEFAULT 'new',
                    score INTEGER NOT NULL DEFAULT 0,
                    tags JSONB DEFAULT '[]',
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except Exception:
            return False


def _load_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


class PostgreSQLRuleStore(RuleStore):
    """Rule store backed by the ``scoring_rules`` table."""

    def __init__(self, db: PostgreSQLPool):
        self.db = db
        self.logger = get_logger("lead_scoring.persistence.rules")

    async def list_active_rules(self) -> List[Rule]:
        try:
            async with self.db.pool.acquire() as conn:
                rows = await conn.fetch("""
                    SELECT * FROM scoring_rules
                    WHERE is_active = TRUE
                    ORDER BY priority ASC, name ASC
                """)
                return [self._row_to_rule(row) for row in rows]

        except Exception as e:
            self.logger.error("Error loading active rules", error=str(e))
            raise FetchFailedError("Failed to find active scoring rules", {"error": str(e)})

    async def find_rule_by_id(self, rule_id: str) -> Optional[Rule]:
        try:
            async with self.db.pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT * FROM scoring_rules WHERE id = $1
                """, rule_id)

                if not row:
                    return None

                return self._row_to_rule(row)

        except Exception as e:
            self.logger.error("Error loading rule", rule_id=rule_id, error=str(e))
            raise FetchFailedError("Failed to find scoring rule", {"rule_id": rule_id, "error": str(e)})

    async def list_rules(self, query: RuleListQuery) -> RuleListResult:
        clauses: List[str] = []
        args: List[Any] = []
        f = query.filter

        if f.keyword:
            args.append(f"%{f.keyword}%")
            clauses.append(f"name ILIKE ${len(args)}")
        if f.is_active is not None:
            args.append(f.is_active)
            clauses.append(f"is_active = ${len(args)}")
        if f.created_by:
            args.append(f.created_by)
            clauses.append(f"created_by_user_id = ${len(args)}")
        if f.min_score is not None:
            args.append(f.min_score)
            clauses.append(f"score >= ${len(args)}")
        if f.max_score is not None:
            args.append(f.max_score)
            clauses.append(f"score <= ${len(args)}")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        column = RULE_SORT_COLUMNS[query.sort_by]
        direction = "DESC" if query.sort_order == SortOrder.DESC else "ASC"
        offset = (query.page - 1) * query.limit

        try:
            async with self.db.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM scoring_rules {where} ORDER BY {column} {direction} "
                    f"LIMIT ${len(args) + 1} OFFSET ${len(args) + 2}",
                    *args, query.limit, offset
                )
                total = await conn.fetchval(f"SELECT COUNT(*) FROM scoring_rules {where}", *args)

                return RuleListResult(
                    items=[self._row_to_rule(row) for row in rows],
                    total=total or 0,
                    page=query.page,
                    limit=query.limit
                )

        except Exception as e:
            self.logger.error("Error listing rules", error=str(e))
            raise FetchFailedError("Failed to list scoring rules", {"error": str(e)})

    async def save_rule(self, rule: Rule) -> Rule:
        try:
            async with self.db.pool.acquire() as conn:
                conditions_json = json.dumps([c.to_dict() for c in rule.conditions])

                await conn.execute("""
                    INSERT INTO scoring_rules (
                        id, name, description, condition, score, is_active,
                        priority, created_by_user_id, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4::jsonb, $5, $6, $7, $8, $9, $10)
                    ON CONFLICT (id) DO UPDATE SET
                        name = EXCLUDED.name,
                        description = EXCLUDED.description,
                        condition = EXCLUDED.condition,
                        score = EXCLUDED.score,
                        is_active = EXCLUDED.is_active,
                        priority = EXCLUDED.priority,
                        updated_at = EXCLUDED.updated_at
                """,
                    rule.rule_id, rule.name, rule.description, conditions_json, rule.score,
                    rule.is_active, rule.priority, rule.created_by, rule.created_at, rule.updated_at
                )

                self.logger.info("Rule saved", rule_id=rule.rule_id, name=rule.name)
                return rule

        except Exception as e:
            self.logger.error("Error saving rule", rule_id=rule.rule_id, error=str(e))
            raise PersistenceError("Failed to save scoring rule", {"rule_id": rule.rule_id, "error": str(e)})

    async def delete_rule(self, rule_id: str) -> bool:
        try:
            async with self.db.pool.acquire() as conn:
                result = await conn.execute("""
                    DELETE FROM scoring_rules WHERE id = $1
                """, rule_id)

                if result == "DELETE 1":
                    self.logger.info("Rule deleted", rule_id=rule_id)
                    return True

                self.logger.warning("Rule not found for deletion", rule_id=rule_id)
                return False

        except Exception as e:
            self.logger.error("Error deleting rule", rule_id=rule_id, error=str(e))
            raise PersistenceError("Failed to delete scoring rule", {"rule_id": rule_id, "error": str(e)})

    def _row_to_rule(self, row) -> Rule:
        """Convert database row to Rule object."""
        conditions = [Condition.from_dict(data) for data in _load_json(row['condition']) or []]

        return Rule(
            rule_id=row['id'],
            name=row['name'],
            description=row['description'],
            conditions=conditions,
            score=row['score'],
            is_active=row['is_active'],
            priority=row['priority'],
            created_by=row['created_by_user_id'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )


class PostgreSQLRecordStore(RecordStore):
    """Lead store backed by the ``leads`` table."""

    def __init__(self, db: PostgreSQLPool):
        self.db = db
        self.logger = get_logger("lead_scoring.persistence.leads")

    async def get_record(self, record_id: str) -> Optional[LeadRecord]:
        try:
            async with self.db.pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT * FROM leads WHERE id = $1
                """, record_id)

                if not row:
                    return None

                return self._row_to_record(row)

        except Exception as e:
            self.logger.error("Error loading lead", record_id=record_id, error=str(e))
            raise FetchFailedError("Failed to load lead", {"record_id": record_id, "error": str(e)})

    async def list_record_ids(self) -> List[str]:
        try:
            async with self.db.pool.acquire() as conn:
                rows = await conn.fetch("SELECT id FROM leads ORDER BY created_at ASC")
                return [row['id'] for row in rows]

        except Exception as e:
            self.logger.error("Error listing leads", error=str(e))
            raise FetchFailedError("Failed to list leads", {"error": str(e)})

    async def update_score(self, record_id: str, score: int) -> None:
        try:
            async with self.db.pool.acquire() as conn:
                result = await conn.execute("""
                    UPDATE leads SET score = $2, updated_at = NOW() WHERE id = $1
                """, record_id, score)

        except Exception as e:
            self.logger.error("Error updating lead score", record_id=record_id, error=str(e))
            raise PersistenceError("Failed to update lead score", {"record_id": record_id, "error": str(e)})

        if result != "UPDATE 1":
            raise PersistenceError("Lead not found for score update", {"record_id": record_id})

    def _row_to_record(self, row) -> LeadRecord:
        fields: Dict[str, Any] = {name: row[column] for name, column in LEAD_SCORED_FIELDS.items()}
        fields["tags"] = _load_json(fields["tags"]) or []
        return LeadRecord(record_id=row['id'], fields=fields, score=row['score'])
