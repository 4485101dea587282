"""
Task store: CRUD for tasks scoped to an owning user, with a per-user quota.

Ownership checks are not done here; callers resolve a task with
``get_owned_task`` before mutating it.
"""
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func, insert, literal, select
from sqlalchemy.orm import Session

from ..core.exceptions import QuotaExceededError, TaskNotFoundError, UserNotFoundError, ValidationError
from ..models.task import TITLE_MAX_LENGTH, Task
from ..models.user import User

logger = logging.getLogger(__name__)

DEFAULT_TASK_QUOTA = 20

UPDATABLE_FIELDS = ("title", "description", "due_date", "is_completed")


def validate_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Task title cannot be empty", context={"field": "title"})
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Task title cannot be longer than {TITLE_MAX_LENGTH} characters",
            context={"field": "title"},
        )
    return title


def validate_description(description: Optional[str]) -> str:
    if description is None or not description.strip():
        raise ValidationError("Task description cannot be empty", context={"field": "description"})
    return description


class TasksService:
    """Persistence operations over tasks."""

    def __init__(self, db: Session, quota: int = DEFAULT_TASK_QUOTA):
        self.db = db
        self.quota = quota

    def create(
        self,
        owner_id: int,
        title: str,
        description: str,
        due_date: Optional[datetime] = None,
        is_completed: bool = False,
    ) -> Task:
        """
        Create a task unless the owner already holds ``quota`` tasks.

        The count and the insert run as one conditional INSERT ... SELECT
        inside a transaction that holds the owner's row lock, so concurrent
        creates for the same owner cannot overshoot the quota.

        Raises:
            ValidationError: blank title/description or title too long
            UserNotFoundError: owner does not exist
            QuotaExceededError: owner is at the quota; nothing is written
        """
        validate_title(title)
        validate_description(description)

        tasks_table = Task.__table__
        try:
            owner = self.db.execute(
                select(User.id).where(User.id == owner_id).with_for_update()
            ).first()
            if owner is None:
                raise UserNotFoundError()

            owned_count = (
                select(func.count(tasks_table.c.id))
                .where(tasks_table.c.user_id == owner_id)
                .correlate(None)
                .scalar_subquery()
            )

            columns = ["title", "description", "is_completed", "user_id"]
            values = [
                literal(title, String),
                literal(description, Text),
                literal(bool(is_completed), Boolean),
                literal(owner_id, Integer),
            ]
            if due_date is not None:
                columns.append("due_date")
                values.append(literal(due_date, DateTime(timezone=True)))

            stmt = (
                insert(tasks_table)
                .from_select(columns, select(*values).where(owned_count < self.quota))
                .returning(tasks_table.c.id)
            )
            task_id = self.db.execute(stmt).scalar_one_or_none()
            if task_id is None:
                raise QuotaExceededError(self.quota)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created task {task_id} for user {owner_id}")
        return self.get_by_id(task_id)

    def get_by_id(self, task_id: int) -> Task:
        task = self.db.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def update(self, task_id: int, changes: Mapping[str, Any]) -> Task:
        """
        Apply a partial update.

        Only keys present in ``changes`` are touched; every omitted field keeps
        its stored value. ``None`` clears ``due_date`` and is ignored for the
        non-nullable fields.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown task fields: {', '.join(sorted(unknown))}",
                context={"fields": sorted(unknown)},
            )

        task = self.get_by_id(task_id)

        if changes.get("title") is not None:
            task.title = validate_title(changes["title"])
        if changes.get("description") is not None:
            task.description = validate_description(changes["description"])
        if "due_date" in changes:
            task.due_date = changes["due_date"]
        if changes.get("is_completed") is not None:
            task.is_completed = bool(changes["is_completed"])

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> None:
        task = self.db.get(Task, task_id)
        if task is None:
            return
        self.db.delete(task)
        self.db.commit()
        logger.info(f"Deleted task {task_id}")

    def list_by_owner(self, owner_id: int) -> List[Task]:
        return (
            self.db.query(Task)
            .filter(Task.user_id == owner_id)
            .order_by(Task.id)
            .all()
        )

    def count_by_owner(self, owner_id: int) -> int:
        return self.db.query(func.count(Task.id)).filter(Task.user_id == owner_id).scalar()

    def page_by_owner(self, owner_id: int, page: int = 1, page_size: int = 10) -> Tuple[List[Task], int]:
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive")

        query = self.db.query(Task).filter(Task.user_id == owner_id)
        total = query.count()
        items = (
            query.order_by(Task.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return items, total


def get_owned_task(tasks: TasksService, task_id: int, caller_id: int) -> Task:
    """
    Resolve a task for its owner.

    A missing task and one owned by someone else raise the same
    TaskNotFoundError so callers cannot probe for other users' ids.
    """
    task = tasks.get_by_id(task_id)
    if task.user_id != caller_id:
        logger.info(f"User {caller_id} denied access to task {task_id}")
        raise TaskNotFoundError(task_id)
    return task
