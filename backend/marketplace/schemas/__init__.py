"""Pydantic Schemas — request validation and response shapes at the HTTP boundary.

Invariants:
    - Schemas never call services or touch the ledger
    - Structural checks live here; business rules stay in core/
"""
