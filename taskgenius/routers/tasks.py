from typing import List
from fastapi import APIRouter, Depends, Query, status

from ..core.auth import CurrentUser, get_current_user
from ..core.dependencies import get_tasks_service
from ..schemas.task import TaskCreate, TaskPage, TaskResponse, TaskUpdate, convert_datetime_to_utc
from ..services.tasks import TasksService, get_owned_task

router = APIRouter()


@router.get("/", response_model=List[TaskResponse])
def get_tasks(
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Get all tasks of the authenticated user"""
    return tasks.list_by_owner(current_user.user_id)


@router.get("/paged", response_model=TaskPage)
def get_tasks_paged(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    page_size: int = Query(10, ge=1, le=100, description="Number of tasks per page"),
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Get the authenticated user's tasks one page at a time"""
    items, total = tasks.page_by_owner(current_user.user_id, page, page_size)
    return TaskPage(
        items=items,
        total_count=total,
        page_size=page_size,
        current_page=page,
        has_next=page * page_size < total,
    )


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Get a specific task by ID"""
    return get_owned_task(tasks, task_id, current_user.user_id)


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Create a new task for the authenticated user"""
    return tasks.create(
        owner_id=current_user.user_id,
        title=task_data.title,
        description=task_data.description,
        due_date=convert_datetime_to_utc(task_data.due_date),
        is_completed=task_data.is_completed,
    )


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Update a task; fields left out of the body keep their value"""
    get_owned_task(tasks, task_id, current_user.user_id)

    changes = task_update.model_dump(exclude_unset=True)
    if "due_date" in changes:
        changes["due_date"] = convert_datetime_to_utc(changes["due_date"])

    return tasks.update(task_id, changes)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
):
    """Delete a task"""
    get_owned_task(tasks, task_id, current_user.user_id)
    tasks.delete(task_id)
