"""Pydantic models for generation plans and their per-objective breakdown."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, computed_field, model_validator

from .quiz import QuestionType

CUSTOM_APPROACH = "custom"


class PlanStatus(str, Enum):
    """Lifecycle states of a generation plan."""

    DRAFT = "draft"
    APPROVED = "approved"
    MODIFIED = "modified"
    USED = "used"


class TypeCount(BaseModel):
    """Number of questions of one type planned for an objective."""

    type: QuestionType
    count: int = Field(..., ge=0)
    reasoning: str | None = Field(None, description="Why this type was chosen")


class ObjectiveBreakdown(BaseModel):
    """Planned question cells for one learning objective."""

    objective_id: str = Field(..., min_length=1)
    type_counts: list[TypeCount] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(cell.count for cell in self.type_counts)

    def count_for(self, question_type: QuestionType) -> int:
        return sum(c.count for c in self.type_counts if c.type == question_type)


class DistributionEntry(BaseModel):
    """Quiz-wide total for one question type."""

    type: QuestionType
    total_count: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)


class ModificationRecord(BaseModel):
    """One user edit of a plan's breakdown."""

    modified_by: str | None = None
    modified_at: datetime = Field(default_factory=datetime.now)
    description: str = "Breakdown updated"
    previous_breakdown: list[ObjectiveBreakdown] = Field(default_factory=list)


class CustomTypeSpec(BaseModel):
    """One row of a user-defined question-type formula."""

    type: QuestionType
    count: int = Field(default=0, ge=0)
    percentage: float | None = Field(None, ge=0.0, le=100.0)
    scope: Literal["per-objective", "whole-quiz"] = "per-objective"
    edit_mode: Literal["count", "percentage"] = "count"


class CustomFormula(BaseModel):
    """User-defined replacement for an approach template."""

    question_types: list[CustomTypeSpec] = Field(..., min_length=1)
    total_questions: int | None = Field(None, ge=1)

    @property
    def uses_percentages(self) -> bool:
        return any(spec.edit_mode == "percentage" for spec in self.question_types)


def breakdown_total(breakdown: list[ObjectiveBreakdown]) -> int:
    """Sum of every cell in a breakdown."""
    return sum(entry.total for entry in breakdown)


def compute_distribution(breakdown: list[ObjectiveBreakdown]) -> list[DistributionEntry]:
    """
    Derive the quiz-wide type distribution from a breakdown.

    Types appear in the order they are first met in the breakdown. Percentages
    are rounded against the breakdown's own total.

    Args:
        breakdown: Per-objective cells

    Returns:
        One entry per question type with a non-zero or explicit cell
    """
    totals: dict[QuestionType, int] = {}
    for entry in breakdown:
        for cell in entry.type_counts:
            totals[cell.type] = totals.get(cell.type, 0) + cell.count

    grand_total = sum(totals.values())
    return [
        DistributionEntry(
            type=question_type,
            total_count=count,
            percentage=round(count / grand_total * 100) if grand_total else 0,
        )
        for question_type, count in totals.items()
    ]


class GenerationPlan(BaseModel):
    """A per-objective question breakdown for one quiz."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    quiz_id: str = Field(..., min_length=1)
    approach_id: str = Field(..., min_length=1, description="Approach template id or 'custom'")
    questions_per_objective: int = Field(..., ge=1)
    total_questions: int = Field(..., ge=0)
    breakdown: list[ObjectiveBreakdown] = Field(default_factory=list)
    status: PlanStatus = Field(default=PlanStatus.DRAFT)
    modifications: list[ModificationRecord] = Field(default_factory=list)
    custom_formula: CustomFormula | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    used_at: datetime | None = Field(None, description="When a generation run consumed the plan")

    @model_validator(mode="after")
    def check_total_matches_breakdown(self) -> "GenerationPlan":
        """Reject plans whose stored total disagrees with their breakdown."""
        actual = breakdown_total(self.breakdown)
        if actual != self.total_questions:
            raise ValueError(
                f"total_questions is {self.total_questions} but breakdown sums to {actual}"
            )
        return self

    @computed_field
    @property
    def distribution(self) -> list[DistributionEntry]:
        return compute_distribution(self.breakdown)

    @property
    def is_modified(self) -> bool:
        return len(self.modifications) > 0

    @property
    def is_consumed(self) -> bool:
        """True once a run has used the plan, even if it was later demoted."""
        return self.used_at is not None

    def replace_breakdown(
        self,
        new_breakdown: list[ObjectiveBreakdown],
        modified_by: str | None = None,
        description: str = "Breakdown updated",
    ) -> None:
        """
        Swap in a new breakdown and record the edit.

        The total is recomputed from the new cells, the previous breakdown is
        kept in a single new modification record and the plan moves to
        ``modified``.
        """
        previous = [entry.model_copy(deep=True) for entry in self.breakdown]
        self.breakdown = [entry.model_copy(deep=True) for entry in new_breakdown]
        self.total_questions = breakdown_total(self.breakdown)
        self.modifications.append(
            ModificationRecord(
                modified_by=modified_by,
                description=description,
                previous_breakdown=previous,
            )
        )
        self.status = PlanStatus.MODIFIED
        self.updated_at = datetime.now()
