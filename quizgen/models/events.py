"""Typed progress events emitted while a generation run is streaming."""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .quiz import Question, QuestionType
from .run import RunError, RunSummary


class BaseEvent(BaseModel):
    """Common fields of every stream event."""

    timestamp: datetime = Field(default_factory=datetime.now)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict for the transport layer."""
        return self.model_dump(mode="json")


class Connected(BaseEvent):
    event: Literal["connected"] = "connected"
    session_id: str
    message: str = "Event stream established"


class BatchStarted(BaseEvent):
    event: Literal["batch-started"] = "batch-started"
    quiz_id: str
    plan_id: str | None = None
    total_objectives: int
    total_questions: int
    question_types: list[QuestionType] = Field(default_factory=list)


class QuestionProgress(BaseEvent):
    event: Literal["question-progress"] = "question-progress"
    objective_id: str
    question_id: str | None = None
    status: Literal["started", "retrieving", "generating", "completed", "failed", "skipped"]
    objective_index: int = Field(..., ge=1)
    total_objectives: int = Field(..., ge=1)
    detail: dict[str, Any] = Field(default_factory=dict)


class TextChunk(BaseEvent):
    event: Literal["text-chunk"] = "text-chunk"
    question_id: str
    chunk: str
    total_length: int = 0


class QuestionComplete(BaseEvent):
    event: Literal["question-complete"] = "question-complete"
    question_id: str
    objective_id: str | None = None
    question: Question


class ErrorEvent(BaseEvent):
    event: Literal["error"] = "error"
    question_id: str | None = None
    message: str
    error_type: str


class Heartbeat(BaseEvent):
    event: Literal["heartbeat"] = "heartbeat"


class BatchComplete(BaseEvent):
    event: Literal["batch-complete"] = "batch-complete"
    success: bool
    summary: RunSummary
    errors: list[RunError] = Field(default_factory=list)


ProgressEvent = Annotated[
    Union[
        Connected,
        BatchStarted,
        QuestionProgress,
        TextChunk,
        QuestionComplete,
        ErrorEvent,
        Heartbeat,
        BatchComplete,
    ],
    Field(discriminator="event"),
]

_event_adapter = TypeAdapter(ProgressEvent)


def parse_event(payload: dict[str, Any]) -> BaseEvent:
    """Rebuild a typed event from its JSON payload."""
    return _event_adapter.validate_python(payload)
