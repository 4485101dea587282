"""
AI assist gateway.

Turns task data into prompts for the Gemini generateContent endpoint and
pulls the generated text back out of its response.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..core.config import Settings
from ..core.exceptions import (
    GeniusAuthError,
    GeniusBadRequestError,
    GeniusRateLimitError,
    GeniusServiceError,
    GeniusTimeoutError,
    ValidationError,
)
from ..schemas.genius import (
    ContentItem,
    GeminiRequest,
    GeminiResponse,
    GenerationConfig,
    TaskDetail,
    TextPart,
)

logger = logging.getLogger(__name__)

DUE_DATE_FORMAT = "%d/%m/%Y"

ADVICE_FALLBACK = "Could not obtain advice."
TITLE_FALLBACK = "Could not generate a title."
DESCRIPTION_FALLBACK = "Could not format the description."
TASK_ADVICE_FALLBACK = "Could not obtain advice for this task."
ANSWER_FALLBACK = "Could not answer the question."


@dataclass(frozen=True)
class PromptRequest:
    """One templated call: prompt text, output bound and what to return on empty output."""
    prompt: str
    max_output_tokens: int
    fallback: str


def extract_text(response: GeminiResponse) -> Optional[str]:
    """First candidate's first part text, stripped; None when absent or blank."""
    if not response.candidates:
        return None
    content = response.candidates[0].content
    if content is None or not content.parts:
        return None
    text = content.parts[0].text
    if text is None or not text.strip():
        return None
    return text.strip()


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} cannot be null or empty", context={"field": field})
    return value


def _require_tasks(tasks: Sequence[TaskDetail]) -> Sequence[TaskDetail]:
    if not tasks:
        raise ValidationError("Task list cannot be empty", context={"field": "tasks"})
    return tasks


def _task_lines(tasks: Sequence[TaskDetail]) -> str:
    lines = []
    for task in tasks:
        lines.append(f"- {task.title}: {task.description}")
        if task.due_date is not None:
            lines.append(f"(Due: {task.due_date.strftime(DUE_DATE_FORMAT)})")
    return "\n".join(lines) + "\n"


def build_advice_prompt(tasks: Sequence[TaskDetail]) -> str:
    return (
        "Give me one short piece of advice, no more than 30 words, "
        "on how to organize myself better with these tasks:\n"
        + _task_lines(tasks)
    )


def build_title_prompt(description: str) -> str:
    return (
        f'Generate a short, descriptive title for the following task: "{description}". '
        "It must be a single sentence. Reply only with the suggested title and nothing else."
    )


def build_description_prompt(description: str) -> str:
    return (
        f'Rewrite the following task description so it is clearer and easier to understand: "{description}". '
        "Reply only with the rewritten text as plain text. Do not add formatting, markdown, "
        "suggestions or advice."
    )


def build_task_advice_prompt(description: str) -> str:
    return (
        "Give me brief, practical advice, no more than 40 words, on how to get "
        f'the following task done: "{description}". Reply in plain text only.'
    )


def build_question_prompt(tasks: Sequence[TaskDetail], question: str) -> str:
    return (
        "These are my current tasks:\n"
        + _task_lines(tasks)
        + f'Answer this question about them briefly, in plain text: "{question}"'
    )


class GeniusService:
    """Client for the external text-generation endpoint."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.gemini_base_url
        self.model = settings.gemini_model
        self.api_key = settings.gemini_api_key
        self.timeout = settings.gemini_timeout_seconds
        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    # Public operations

    async def get_advice(self, tasks: Sequence[TaskDetail]) -> str:
        _require_tasks(tasks)
        return await self._execute(
            PromptRequest(build_advice_prompt(tasks), 500, ADVICE_FALLBACK)
        )

    async def get_title_suggestion(self, description: str) -> str:
        _require_text(description, "Task description")
        return await self._execute(
            PromptRequest(build_title_prompt(description), 50, TITLE_FALLBACK)
        )

    async def get_description_formatting(self, description: str) -> str:
        _require_text(description, "Task description")
        return await self._execute(
            PromptRequest(build_description_prompt(description), 100, DESCRIPTION_FALLBACK)
        )

    async def get_advice_for_task(self, description: str) -> str:
        _require_text(description, "Task description")
        return await self._execute(
            PromptRequest(build_task_advice_prompt(description), 200, TASK_ADVICE_FALLBACK)
        )

    async def get_answer_to_question(self, tasks: Sequence[TaskDetail], question: str) -> str:
        _require_tasks(tasks)
        _require_text(question, "Question")
        return await self._execute(
            PromptRequest(build_question_prompt(tasks, question), 300, ANSWER_FALLBACK)
        )

    # Transport

    def build_request_url(self) -> str:
        return f"{self.base_url}{self.model}?key={self.api_key}"

    def _redacted_url(self) -> str:
        return f"{self.base_url}{self.model}?key=***"

    @staticmethod
    def build_payload(request: PromptRequest) -> dict:
        body = GeminiRequest(
            contents=[ContentItem(role="user", parts=[TextPart(text=request.prompt)])],
            generationConfig=GenerationConfig(maxOutputTokens=request.max_output_tokens),
        )
        return body.model_dump(exclude_none=True)

    async def _execute(self, request: PromptRequest) -> str:
        payload = self.build_payload(request)
        log_url = self._redacted_url()

        try:
            response = await self.client.post(
                self.build_request_url(),
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Gemini API request timed out. URL: {log_url}")
            logger.debug(f"Request: {json.dumps(payload)}")
            raise GeniusTimeoutError(self.timeout, original_error=e) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini API transport error: {e}. URL: {log_url}")
            logger.debug(f"Request: {json.dumps(payload)}")
            raise GeniusServiceError("Failed to reach Gemini API", original_error=e) from e

        self._ensure_success(response, log_url, payload)

        try:
            parsed = GeminiResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"Failed to parse Gemini API response. URL: {log_url}")
            logger.debug(f"Request: {json.dumps(payload)}\nResponse: {response.text}")
            raise GeniusServiceError("Failed to deserialize response", original_error=e) from e

        text = extract_text(parsed)
        if text is None:
            logger.warning("Gemini API returned an empty response")
            return request.fallback
        return text

    @staticmethod
    def _ensure_success(response: httpx.Response, log_url: str, payload: dict) -> None:
        if response.is_success:
            return

        status_code = response.status_code
        logger.error(f"Gemini API request failed. Status: {status_code}, URL: {log_url}")
        logger.debug(f"Request: {json.dumps(payload)}\nResponse: {response.text}")
        if status_code == 401:
            raise GeniusAuthError(status_code)
        if status_code == 400:
            raise GeniusBadRequestError(status_code)
        if status_code == 429:
            raise GeniusRateLimitError(status_code)
        raise GeniusServiceError(f"Request failed with status code {status_code}", status=status_code)
