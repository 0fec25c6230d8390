"""TaskDesk Application Package — task tracking with deferred assignment and live events.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
