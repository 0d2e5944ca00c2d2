"""Pydantic models for quizzes, learning objectives and generated questions."""

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class QuestionType(str, Enum):
    """Question formats the generator can produce."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FLASHCARD = "flashcard"
    SUMMARY = "summary"
    DISCUSSION = "discussion"
    MATCHING = "matching"
    ORDERING = "ordering"
    CLOZE = "cloze"


class QuestionDifficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


class ProcessingStatus(str, Enum):
    """Ingestion status of a course material."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _new_id() -> str:
    return str(uuid.uuid4())


class LearningObjective(BaseModel):
    """A target skill or concept the quiz should assess."""

    id: str = Field(default_factory=_new_id, description="Objective identifier")
    text: str = Field(..., min_length=1, description="Objective statement")
    order: int = Field(default=0, ge=0, description="Position within the quiz")


class Material(BaseModel):
    """A course material assigned to a quiz. Ingestion happens elsewhere."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1)
    type: str = Field(default="pdf", description="Source format (pdf, docx, url, text)")
    processing_status: ProcessingStatus = Field(default=ProcessingStatus.PENDING)

    @property
    def is_processed(self) -> bool:
        return self.processing_status == ProcessingStatus.COMPLETED


class Quiz(BaseModel):
    """A quiz with its learning objectives and assigned materials."""

    id: str = Field(default_factory=_new_id)
    name: str = Field(..., min_length=1, description="Quiz name")
    objectives: list[LearningObjective] = Field(default_factory=list)
    materials: list[Material] = Field(default_factory=list)
    difficulty: QuestionDifficulty | None = Field(
        None,
        description="Difficulty requested for generated questions",
    )

    @field_validator("objectives")
    @classmethod
    def validate_objectives(cls, v: list[LearningObjective]) -> list[LearningObjective]:
        """Ensure objective ids are unique and keep them in their declared order."""
        ids = [objective.id for objective in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Learning objective ids must be unique")
        return sorted(v, key=lambda objective: objective.order)

    @property
    def processed_materials(self) -> list[Material]:
        """Materials that finished ingestion and can scope retrieval."""
        return [m for m in self.materials if m.is_processed]

    @property
    def objective_ids(self) -> list[str]:
        return [objective.id for objective in self.objectives]

    def get_objective(self, objective_id: str) -> LearningObjective | None:
        return next((o for o in self.objectives if o.id == objective_id), None)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Cell Biology Week 3",
                "objectives": [
                    {"text": "Explain the role of mitochondria", "order": 0},
                    {"text": "Compare mitosis and meiosis", "order": 1},
                ],
                "materials": [
                    {"name": "lecture-3.pdf", "type": "pdf", "processing_status": "completed"}
                ],
                "difficulty": "moderate",
            }
        }
    }


class Question(BaseModel):
    """A generated quiz question, owned by its quiz."""

    id: str = Field(default_factory=_new_id, description="Unique identifier")
    quiz_id: str | None = Field(None, description="Owning quiz")
    objective_id: str | None = Field(None, description="Objective the question assesses")
    objective_text: str | None = Field(None, description="Objective statement at generation time")
    type: QuestionType = Field(..., description="Question format")
    question_text: str = Field(..., min_length=1, description="Prompt shown to the learner")
    content: dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific payload (options, answer, pairs, ...)",
    )
    difficulty: QuestionDifficulty = Field(default=QuestionDifficulty.MODERATE)

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "multiple-choice",
                "question_text": "Which organelle produces most of the cell's ATP?",
                "content": {
                    "options": ["Nucleus", "Mitochondrion", "Ribosome", "Golgi apparatus"],
                    "correct_answer": "Mitochondrion",
                    "explanation": "Oxidative phosphorylation happens in mitochondria.",
                },
                "difficulty": "moderate",
            }
        }
    }
