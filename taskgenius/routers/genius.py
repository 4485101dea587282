import asyncio
import logging
from typing import Awaitable, List, TypeVar
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from ..core.auth import CurrentUser, get_current_user
from ..core.dependencies import get_genius_service, get_tasks_service
from ..models.task import Task
from ..schemas.genius import (
    DescriptionFormattingResponse,
    TaskAdviceResponse,
    TaskAnswerResponse,
    TaskDetail,
    TaskQuestionRequest,
    TitleSuggestionResponse,
)
from ..services.genius import GeniusService
from ..services.tasks import TasksService, get_owned_task

logger = logging.getLogger(__name__)

router = APIRouter()

NO_TASKS_MESSAGE = "No tasks found for the user."

# seconds between client disconnect checks
DISCONNECT_POLL_INTERVAL = 0.5

T = TypeVar("T")


async def run_until_disconnected(request: Request, call: Awaitable[T]) -> T:
    """
    Await an outbound call, cancelling it if the client goes away first.
    """
    pending = asyncio.ensure_future(call)
    try:
        while True:
            done, _ = await asyncio.wait({pending}, timeout=DISCONNECT_POLL_INTERVAL)
            if done:
                return pending.result()
            if await request.is_disconnected():
                logger.info(f"Client disconnected, abandoning {request.url.path}")
                raise HTTPException(status_code=499, detail="Client closed request")
    finally:
        if not pending.done():
            pending.cancel()


def _details(tasks: List[Task]) -> List[TaskDetail]:
    return [
        TaskDetail(title=task.title, description=task.description, due_date=task.due_date)
        for task in tasks
    ]


def _load_details(tasks: TasksService, user_id: int, pending_only: bool = False) -> List[TaskDetail]:
    """
    Snapshot the caller's tasks and release the session.

    The connection goes back to the pool before the Gemini call is awaited.
    """
    try:
        owned = tasks.list_by_owner(user_id)
        if pending_only:
            owned = [task for task in owned if not task.is_completed]
        return _details(owned)
    finally:
        tasks.db.close()


def _load_owned_description(tasks: TasksService, task_id: int, user_id: int) -> str:
    try:
        return get_owned_task(tasks, task_id, user_id).description
    finally:
        tasks.db.close()


@router.get("/advice", response_model=TaskAdviceResponse)
async def get_task_advice(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
    genius: GeniusService = Depends(get_genius_service),
):
    """Organizing advice over the caller's pending tasks"""
    pending = await run_in_threadpool(_load_details, tasks, current_user.user_id, True)
    if not pending:
        return TaskAdviceResponse(advice=NO_TASKS_MESSAGE)

    advice = await run_until_disconnected(request, genius.get_advice(pending))
    return TaskAdviceResponse(advice=advice)


@router.get("/titleSuggestion", response_model=TitleSuggestionResponse)
async def get_title_suggestion(
    request: Request,
    task_description: str = Query(..., alias="taskDescription"),
    current_user: CurrentUser = Depends(get_current_user),
    genius: GeniusService = Depends(get_genius_service),
):
    """Suggest a title for a task description"""
    title = await run_until_disconnected(request, genius.get_title_suggestion(task_description))
    return TitleSuggestionResponse(title=title)


@router.get("/descriptionFormatting", response_model=DescriptionFormattingResponse)
async def get_description_formatting(
    request: Request,
    task_description: str = Query(..., alias="taskDescription"),
    current_user: CurrentUser = Depends(get_current_user),
    genius: GeniusService = Depends(get_genius_service),
):
    """Rewrite a task description as clearer plain text"""
    description = await run_until_disconnected(
        request, genius.get_description_formatting(task_description)
    )
    return DescriptionFormattingResponse(description=description)


@router.get("/taskAdvice/{task_id}", response_model=TaskAdviceResponse)
async def get_advice_for_task(
    task_id: int,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
    genius: GeniusService = Depends(get_genius_service),
):
    """Advice for one of the caller's tasks"""
    description = await run_in_threadpool(_load_owned_description, tasks, task_id, current_user.user_id)
    advice = await run_until_disconnected(request, genius.get_advice_for_task(description))
    return TaskAdviceResponse(advice=advice)


@router.post("/question", response_model=TaskAnswerResponse)
async def ask_question(
    question_in: TaskQuestionRequest,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TasksService = Depends(get_tasks_service),
    genius: GeniusService = Depends(get_genius_service),
):
    """Answer a free-form question about the caller's tasks"""
    owned = await run_in_threadpool(_load_details, tasks, current_user.user_id)
    if not owned:
        return TaskAnswerResponse(answer=NO_TASKS_MESSAGE)

    answer = await run_until_disconnected(
        request, genius.get_answer_to_question(owned, question_in.question)
    )
    return TaskAnswerResponse(answer=answer)
