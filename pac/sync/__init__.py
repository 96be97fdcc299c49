"""Package-set reconciliation — merge declared targets with the persisted set.

This package provides:
- reconcile: merge a target list into the persisted list and pick what to run
- apply_failures: drop terminally failed packages and sort for persistence
"""
