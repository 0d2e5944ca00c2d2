"""Tests for Pydantic data models."""

import pytest
from pydantic import ValidationError

from quizgen.models.events import (
    BatchComplete,
    BatchStarted,
    ErrorEvent,
    QuestionComplete,
    QuestionProgress,
    parse_event,
)
from quizgen.models.gateway import TypeRequest
from quizgen.models.plan import (
    CustomFormula,
    CustomTypeSpec,
    GenerationPlan,
    ObjectiveBreakdown,
    PlanStatus,
    TypeCount,
    compute_distribution,
)
from quizgen.models.quiz import LearningObjective, Question, QuestionType, Quiz
from quizgen.models.run import GenerationRunResult, ObjectiveResult, RunSummary


def _breakdown(*cells: tuple[str, QuestionType, int]) -> list[ObjectiveBreakdown]:
    entries: dict[str, ObjectiveBreakdown] = {}
    for objective_id, question_type, count in cells:
        entry = entries.setdefault(objective_id, ObjectiveBreakdown(objective_id=objective_id))
        entry.type_counts.append(TypeCount(type=question_type, count=count))
    return list(entries.values())


class TestQuiz:
    """Test Quiz model."""

    def test_objectives_sorted_by_order(self):
        """Test that objectives are kept in their declared order."""
        quiz = Quiz(
            name="Quiz",
            objectives=[
                LearningObjective(id="b", text="Second", order=1),
                LearningObjective(id="a", text="First", order=0),
            ],
        )

        assert quiz.objective_ids == ["a", "b"]

    def test_duplicate_objective_ids_rejected(self):
        """Test that objective ids must be unique."""
        with pytest.raises(ValidationError):
            Quiz(
                name="Quiz",
                objectives=[
                    LearningObjective(id="a", text="One"),
                    LearningObjective(id="a", text="Two"),
                ],
            )

    def test_processed_materials(self, sample_quiz: Quiz):
        """Test that only completed materials count as processed."""
        assert [m.id for m in sample_quiz.processed_materials] == ["m-1"]

    def test_get_objective(self, sample_quiz: Quiz):
        """Test objective lookup by id."""
        assert sample_quiz.get_objective("lo-2").text == "Compare mitosis and meiosis"
        assert sample_quiz.get_objective("missing") is None


class TestGenerationPlan:
    """Test GenerationPlan model."""

    def test_total_must_match_breakdown(self):
        """Test that a stored total disagreeing with the cells is rejected."""
        with pytest.raises(ValidationError):
            GenerationPlan(
                quiz_id="q",
                approach_id="assess",
                questions_per_objective=2,
                total_questions=5,
                breakdown=_breakdown(("lo-1", QuestionType.TRUE_FALSE, 2)),
            )

    def test_negative_counts_rejected(self):
        """Test that cell counts cannot be negative."""
        with pytest.raises(ValidationError):
            TypeCount(type=QuestionType.FLASHCARD, count=-1)

    def test_distribution_is_derived(self):
        """Test that distribution follows the breakdown."""
        plan = GenerationPlan(
            quiz_id="q",
            approach_id="assess",
            questions_per_objective=2,
            total_questions=4,
            breakdown=_breakdown(
                ("lo-1", QuestionType.MULTIPLE_CHOICE, 1),
                ("lo-1", QuestionType.TRUE_FALSE, 1),
                ("lo-2", QuestionType.MULTIPLE_CHOICE, 2),
            ),
        )

        distribution = {d.type: (d.total_count, d.percentage) for d in plan.distribution}
        assert distribution == {
            QuestionType.MULTIPLE_CHOICE: (3, 75),
            QuestionType.TRUE_FALSE: (1, 25),
        }

    def test_replace_breakdown_recomputes_everything(self):
        """Test that replacing the breakdown updates total, distribution and history."""
        plan = GenerationPlan(
            quiz_id="q",
            approach_id="assess",
            questions_per_objective=1,
            total_questions=1,
            breakdown=_breakdown(("lo-1", QuestionType.TRUE_FALSE, 1)),
        )

        plan.replace_breakdown(
            _breakdown(("lo-1", QuestionType.MULTIPLE_CHOICE, 3)),
            modified_by="instructor@example.com",
        )

        assert plan.total_questions == 3
        assert plan.status == PlanStatus.MODIFIED
        assert [d.type for d in plan.distribution] == [QuestionType.MULTIPLE_CHOICE]
        assert len(plan.modifications) == 1
        assert plan.modifications[0].previous_breakdown[0].type_counts[0].count == 1
        assert plan.is_modified

    def test_distribution_serialized(self):
        """Test that the computed distribution is part of the dump."""
        plan = GenerationPlan(
            quiz_id="q",
            approach_id="support",
            questions_per_objective=1,
            total_questions=1,
            breakdown=_breakdown(("lo-1", QuestionType.FLASHCARD, 1)),
        )

        data = plan.model_dump(mode="json")

        assert data["distribution"] == [
            {"type": "flashcard", "total_count": 1, "percentage": 100}
        ]

    def test_empty_distribution(self):
        """Test distribution of an empty breakdown."""
        assert compute_distribution([]) == []


class TestCustomFormula:
    """Test CustomFormula model."""

    def test_uses_percentages(self):
        """Test detection of percentage mode."""
        formula = CustomFormula(
            question_types=[
                CustomTypeSpec(type=QuestionType.CLOZE, percentage=60, edit_mode="percentage"),
                CustomTypeSpec(type=QuestionType.MATCHING, percentage=40, edit_mode="percentage"),
            ],
            total_questions=10,
        )

        assert formula.uses_percentages

    def test_requires_question_types(self):
        """Test that a formula needs at least one type row."""
        with pytest.raises(ValidationError):
            CustomFormula(question_types=[])


class TestRunResult:
    """Test run result models."""

    def test_missing_cells(self):
        """Test that shortfalls per type are reported as cells."""
        result = ObjectiveResult(
            objective_id="lo-1",
            objective_text="Objective",
            requested=[
                TypeRequest(type=QuestionType.MULTIPLE_CHOICE, count=3),
                TypeRequest(type=QuestionType.TRUE_FALSE, count=1),
            ],
            questions=[
                Question(type=QuestionType.MULTIPLE_CHOICE, question_text="Q1"),
                Question(type=QuestionType.TRUE_FALSE, question_text="Q2"),
            ],
        )

        missing = result.missing_cells()

        assert [(c.type, c.count) for c in missing] == [(QuestionType.MULTIPLE_CHOICE, 2)]
        assert result.requested_count == 4
        assert result.generated_count == 2

    def test_failed_cells_skip_complete_objectives(self):
        """Test that failed_cells only lists objectives with missing questions."""
        complete = ObjectiveResult(
            objective_id="lo-1",
            objective_text="Done",
            requested=[TypeRequest(type=QuestionType.FLASHCARD, count=1)],
            questions=[Question(type=QuestionType.FLASHCARD, question_text="Front")],
        )
        empty = ObjectiveResult(
            objective_id="lo-2",
            objective_text="Failed",
            requested=[TypeRequest(type=QuestionType.SUMMARY, count=1)],
        )
        run = GenerationRunResult(
            success=True, quiz_id="q", objective_results=[complete, empty]
        )

        cells = run.failed_cells()

        assert [c.objective_id for c in cells] == ["lo-2"]
        assert cells[0].type_counts[0].type == QuestionType.SUMMARY


class TestEvents:
    """Test stream event models."""

    def test_payload_carries_event_name_and_timestamp(self):
        """Test that payloads are JSON ready and discriminated."""
        payload = BatchStarted(quiz_id="q", total_objectives=2, total_questions=6).to_payload()

        assert payload["event"] == "batch-started"
        assert isinstance(payload["timestamp"], str)

    def test_parse_event_round_trip(self):
        """Test that a payload rebuilds the right event class."""
        question = Question(type=QuestionType.CLOZE, question_text="The ___ is the powerhouse")
        events = [
            QuestionProgress(
                objective_id="lo-1", status="started", objective_index=1, total_objectives=3
            ),
            QuestionComplete(question_id=question.id, objective_id="lo-1", question=question),
            ErrorEvent(message="boom", error_type="generation-error"),
            BatchComplete(success=True, summary=RunSummary(total_generated=3)),
        ]

        for event in events:
            assert parse_event(event.to_payload()) == event

    def test_progress_index_is_one_based(self):
        """Test that objective_index starts at 1."""
        with pytest.raises(ValidationError):
            QuestionProgress(
                objective_id="lo-1", status="started", objective_index=0, total_objectives=1
            )
