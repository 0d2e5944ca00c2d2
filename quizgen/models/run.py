"""Result models for a question generation run."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .gateway import TypeRequest
from .plan import ObjectiveBreakdown, TypeCount
from .quiz import Question, QuestionType


class RunErrorType(str, Enum):
    """Kinds of problems recorded during a run."""

    LOAD_ERROR = "load-error"
    RETRIEVAL_DEGRADED = "retrieval-degraded"
    GENERATION_PARTIAL = "generation-partial"
    GENERATION_ERROR = "generation-error"


class RunError(BaseModel):
    """A failure or warning scoped to the run, an objective or a question type."""

    error_type: RunErrorType
    message: str
    objective_id: str | None = None
    objective_text: str | None = None
    question_type: QuestionType | None = None
    question_id: str | None = None
    missing_count: int = Field(default=0, ge=0)


class ObjectiveResult(BaseModel):
    """Outcome of processing one learning objective."""

    objective_id: str
    objective_text: str
    requested: list[TypeRequest] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    errors: list[RunError] = Field(default_factory=list)
    warnings: list[RunError] = Field(default_factory=list)
    context_chunks: int = Field(default=0, ge=0)

    @property
    def requested_count(self) -> int:
        return sum(r.count for r in self.requested)

    @property
    def generated_count(self) -> int:
        return len(self.questions)

    @property
    def ok(self) -> bool:
        return not self.errors

    def missing_cells(self) -> list[TypeCount]:
        """Requested (type, count) cells that did not come back."""
        missing = []
        for request in self.requested:
            produced = sum(1 for q in self.questions if q.type == request.type)
            if request.count > produced:
                missing.append(TypeCount(type=request.type, count=request.count - produced))
        return missing


class RunSummary(BaseModel):
    """Counts reported in the final batch-complete event."""

    total_objectives: int = 0
    processed_objectives: int = 0
    failed_objectives: int = 0
    total_requested: int = 0
    total_generated: int = 0
    error_count: int = 0
    warning_count: int = 0
    materials_used: int = 0
    course_context: str = ""
    duration_seconds: float = 0.0


class GenerationRunResult(BaseModel):
    """Aggregated output of one generation run."""

    success: bool
    quiz_id: str
    plan_id: str | None = None
    questions: list[Question] = Field(default_factory=list)
    errors: list[RunError] = Field(default_factory=list)
    warnings: list[RunError] = Field(default_factory=list)
    objective_results: list[ObjectiveResult] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
    cancelled: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    def failed_cells(self) -> list[ObjectiveBreakdown]:
        """
        Breakdown of everything that was requested but not generated.

        Passing the result back as a breakdown override re-generates just
        these cells.
        """
        cells = []
        for result in self.objective_results:
            missing = result.missing_cells()
            if missing:
                cells.append(
                    ObjectiveBreakdown(objective_id=result.objective_id, type_counts=missing)
                )
        return cells
