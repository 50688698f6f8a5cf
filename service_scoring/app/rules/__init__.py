"""
Scoring rules package.

Defines the rule model and the pure evaluation pipeline used by the Lead
Scoring Service:

- models: Data classes for Rule, Condition, evaluation results and request
  validation models.
- conditions: Single-condition operators and value coercion.
- evaluator: Flat AND-group / OR-group combination of a rule's conditions.
- engine: Priority-ordered scoring with a clamped 0..100 result.
- tester: Single-rule testing with per-condition diagnostics.

Nothing in this package performs I/O; rules and records are supplied by the
caller.
"""
