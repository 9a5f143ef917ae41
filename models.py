# models.py
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, TypeAdapter, field_validator


class Task(BaseModel):
    id: str
    text: str
    completed: bool = False
    createdAt: str
    updatedAt: str

    @field_validator("createdAt", "updatedAt")
    @classmethod
    def check_iso_timestamp(cls, value: str) -> str:
        # raises ValueError, reported by pydantic as a validation error
        parse_timestamp(value)
        return value


TaskList = TypeAdapter(List[Task])


# --- Request Bodies ---

class TaskCreate(BaseModel):
    text: str


# --- Responses ---

class DeleteResult(BaseModel):
    message: str = "Task deleted successfully"
    deletedId: str
    remainingCount: int


class ClearResult(BaseModel):
    message: str
    clearedCount: int
    remainingCount: int


class ClearAllResult(BaseModel):
    message: str
    deletedCount: int


# --- Timestamps ---
# Stored as UTC with millisecond precision and a trailing "Z",
# e.g. 2024-05-01T09:30:00.125Z

def format_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
