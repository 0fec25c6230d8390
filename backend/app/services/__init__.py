"""Services Layer — assignment resolution, notifications, accounts and task CRUD.

Invariants:
    - Services talk to persistence only through the directory store
    - Every durable change is published after it commits

Design Decisions:
    - One service class per concern, constructed per request by api/dependencies.py
"""
