"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, db/ or models/
    - Functions mutate only the snapshot they are handed, and are deterministic
      given the Stamp they receive

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
