"""Mira Exchange — relay between Bubble and Microsoft identity / Graph calendar.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
