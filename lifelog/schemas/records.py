from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DiaryUpsertRequest(BaseModel):
    content: str = Field(..., min_length=1)
    title: Optional[str] = Field(default=None, max_length=256)
    mood: Optional[str] = Field(default=None, max_length=32)


class DiaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    day: date
    title: Optional[str]
    content: str
    mood: Optional[str]


class TaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    day: Optional[date] = Field(default=None, description="Defaults to today.")
    category: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None


class TaskCompleteRequest(BaseModel):
    completed_on: Optional[date] = Field(default=None, description="Defaults to today.")


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    day: date
    category: Optional[str]
    status: str
    completed_on: Optional[date]


class ReflectionAnswerRequest(BaseModel):
    content: str = Field(..., min_length=1)


class ReflectionAnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    year: int
    content: str


class ReflectionQuestionResponse(BaseModel):
    question_id: int
    day_of_year: int
    question_text: str
    answers: list[ReflectionAnswerResponse] = []
