"""
Request/response models for the AI assist endpoints and the Gemini wire format.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class TaskDetail(BaseModel):
    title: str
    description: str
    due_date: Optional[datetime] = None


class TaskAdviceResponse(BaseModel):
    advice: str


class TitleSuggestionResponse(BaseModel):
    title: str


class DescriptionFormattingResponse(BaseModel):
    description: str


class TaskQuestionRequest(BaseModel):
    question: str = Field(..., min_length=1, description="Question about the caller's tasks")


class TaskAnswerResponse(BaseModel):
    answer: str


# Gemini generateContent wire format

class TextPart(BaseModel):
    text: Optional[str] = None


class ContentItem(BaseModel):
    role: Optional[str] = None
    parts: Optional[List[TextPart]] = None


class GenerationConfig(BaseModel):
    temperature: float = 0.7
    maxOutputTokens: int
    topP: float = 0.9
    topK: int = 40


class GeminiRequest(BaseModel):
    contents: List[ContentItem]
    generationConfig: GenerationConfig


class Candidate(BaseModel):
    content: Optional[ContentItem] = None


class GeminiResponse(BaseModel):
    candidates: Optional[List[Candidate]] = None
