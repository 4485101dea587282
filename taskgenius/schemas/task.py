"""
Pydantic schemas for tasks.
"""
from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


def convert_datetime_to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert datetime to UTC timezone-aware datetime"""
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime, assume UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TaskBase(BaseModel):
    """Base task schema"""
    title: str = Field(..., min_length=1, max_length=100, description="Task title")
    description: str = Field(..., min_length=1, description="Task description")
    due_date: Optional[datetime] = Field(None, description="Task due date")


class TaskCreate(TaskBase):
    """Schema for creating a task"""
    is_completed: bool = Field(False, description="Completion flag")


class TaskUpdate(BaseModel):
    """Schema for updating a task; omitted fields keep their stored value"""
    title: Optional[str] = Field(None, min_length=1, max_length=100, description="Task title")
    description: Optional[str] = Field(None, min_length=1, description="Task description")
    due_date: Optional[datetime] = Field(None, description="Task due date, null clears it")
    is_completed: Optional[bool] = Field(None, description="Completion flag")


class TaskResponse(TaskBase):
    """Schema for task response"""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Task ID")
    is_completed: bool = Field(..., description="Completion flag")
    user_id: int = Field(..., description="User ID who owns the task")
    created_at: datetime = Field(..., description="Task creation timestamp")

    # SQLite hands stored timestamps back without tzinfo; they are UTC
    @field_validator("due_date", "created_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return convert_datetime_to_utc(value)


class TaskPage(BaseModel):
    """Schema for paginated task list"""
    items: List[TaskResponse] = Field(..., description="Tasks on this page")
    total_count: int = Field(..., description="Total number of tasks")
    page_size: int = Field(..., description="Requested page size")
    current_page: int = Field(..., description="Current page, starting at 1")
    has_next: bool = Field(default=False, description="Whether there are more tasks")
