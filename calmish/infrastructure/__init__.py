"""Infrastructure Layer - storage backends, platform signals, external clients.

Invariants:
    - Infrastructure never imports services/ or api/
    - All external failures mapped to CalmishError subclasses

Design Decisions:
    - Resilient wrappers over raw clients (ADR: single responsibility)
"""
