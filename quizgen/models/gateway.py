"""Request and response models exchanged with the retrieval and generation gateways."""

from typing import Any

from pydantic import BaseModel, Field

from .quiz import Question, QuestionDifficulty, QuestionType


class ContentChunk(BaseModel):
    """A retrieved snippet of course material."""

    text: str
    score: float = Field(default=0.0, description="Relevance score, higher is better")
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievalResult(BaseModel):
    """Ranked chunks returned for one objective."""

    chunks: list[ContentChunk] = Field(default_factory=list)


class TypeRequest(BaseModel):
    """How many questions of one type to generate."""

    type: QuestionType
    count: int = Field(..., ge=1)


class GenerationRequest(BaseModel):
    """A batch of question requests for a single learning objective."""

    objective_id: str
    objective_text: str
    requests: list[TypeRequest] = Field(..., min_length=1)
    context: list[ContentChunk] = Field(default_factory=list)
    difficulty: QuestionDifficulty = QuestionDifficulty.MODERATE
    course_context: str = ""

    @property
    def total_requested(self) -> int:
        return sum(r.count for r in self.requests)


class BatchError(BaseModel):
    """A type-scoped failure reported by the generation gateway."""

    question_type: QuestionType | None = None
    index: int | None = Field(None, ge=1, description="1-based position within the type")
    message: str


class GenerationBatchResult(BaseModel):
    """What the generation gateway produced for one batch."""

    questions: list[Question] = Field(default_factory=list)
    total_requested: int = Field(default=0, ge=0)
    total_generated: int = Field(default=0, ge=0)
    errors: list[BatchError] = Field(default_factory=list)
