"""Core Layer - pure domain logic, no storage IO, no async, no network.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Slice dataclasses, snapshot codecs and insights are deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
