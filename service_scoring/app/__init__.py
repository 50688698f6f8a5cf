"""
Lead Scoring Service package.

This package scores CRM leads against administrator-defined rules. It
provides:

- app.service: Scoring operations (evaluate, test rule, calculate, bulk
  update) returning result values.
- app.management: Rule authoring, activation and priority ordering.
- app.rules: Rule model, condition operators, the scoring engine and the
  rule tester.
- app.bulk: Best-effort recomputation across all leads.
- app.persistence: Rule and lead stores (in-memory and PostgreSQL).

Guidelines:
- The engine is stateless; rules and leads live in the stores.
- Rules are read once per operation; there is no rule cache.
- Keep evaluation deterministic and observable (metrics + logs).
"""
