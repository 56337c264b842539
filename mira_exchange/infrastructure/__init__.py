"""Infrastructure Layer — outbound clients (Microsoft, Bubble) and cross-cutting concerns.

Invariants:
    - Infrastructure imports only errors from core/, never domain helpers
    - Every outbound call goes through the shared httpx client (infrastructure/http.py)

Design Decisions:
    - One client class per external system; upstream failures mapped to core/errors.py
"""
