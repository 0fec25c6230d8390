"""Task Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - TaskCreate.title: 1-200 chars, stripped, non-empty
    - TaskUpdate requires at least one field; only description may be cleared to null
    - AssignByEmailRequest.email is matched exactly downstream (format check only here)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.auth import EMAIL_PATTERN


class TaskCreate(BaseModel):
    """Task creation — validates title length and whitespace."""
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the body change.

    description may be sent as null to clear it; title and completed may not.
    """
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10_000)
    completed: bool | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("update requires at least one of title, description, completed")
        for name in ("title", "completed"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly sent in the request body."""
        return self.model_dump(exclude_unset=True)


class AssignRequest(BaseModel):
    """Direct assignment by user id; null unassigns."""
    user_id: UUID | None = None


class AssignByEmailRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN)


class TaskResponse(BaseModel):
    """Task response — public-facing task data, also the live event payload."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    assigned_to_id: UUID | None = None
    created_by_id: UUID
    completed: bool
    created_at: datetime
    updated_at: datetime
