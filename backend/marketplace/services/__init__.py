"""Service Layer — async orchestration around the pure core.

Invariants:
    - Services read snapshots, call core functions, and persist through Ledger.mutate
    - External payment calls happen outside the ledger's write section

Design Decisions:
    - One service class per concern, a handful of methods each (ADR: no god objects)
"""
