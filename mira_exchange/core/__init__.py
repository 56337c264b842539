"""Core Layer — pure relay logic, no IO, no async, no HTTP.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - All functions are pure and deterministic (given an explicit `now`)

Design Decisions:
    - Functional core separated from imperative shell: payload shaping and
      attendee normalization are testable without stubbing HTTP
"""
