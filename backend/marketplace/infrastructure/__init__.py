"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure implements core protocols; core never imports it
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients (ADR: single responsibility)
"""
