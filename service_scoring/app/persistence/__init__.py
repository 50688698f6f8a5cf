"""
Persistence adapters for scoring rules and lead records.

- stores: RuleStore / RecordStore interfaces plus in-memory implementations.
- postgres: asyncpg-backed implementations over the ``scoring_rules`` and
  ``leads`` tables.
"""
