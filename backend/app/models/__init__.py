"""ORM Models — SQLAlchemy declarative models for users, tasks and pending assignments.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from app.models.user import User  # noqa: F401
from app.models.task import Task  # noqa: F401
from app.models.pending_assignment import PendingAssignment  # noqa: F401
