"""Services Layer — one module per relay operation.

Invariants:
    - Services orchestrate: validate upstream results, call core/ helpers, call clients
    - Outbound calls are awaited sequentially, never gathered

Design Decisions:
    - Routes stay thin and delegate here (impureim sandwich: core is pure, services do IO)
"""
