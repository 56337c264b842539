"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary: a request that fails here
      never triggers an outbound call
"""
