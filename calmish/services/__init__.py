"""Services Layer - stateful orchestration around the pure core.

Invariants:
    - StateStore is the only mutator of app state slices
    - Storage failures stop at StatePersistence; validation errors reach callers
"""
