"""Tests for the generation plan lifecycle manager."""

import pytest

from quizgen.errors import PlanNotFoundError, PlanStateError, PlanningError, TemplateNotFoundError
from quizgen.models.plan import (
    CUSTOM_APPROACH,
    CustomFormula,
    CustomTypeSpec,
    ObjectiveBreakdown,
    PlanStatus,
    TypeCount,
)
from quizgen.models.quiz import QuestionType, Quiz
from quizgen.planning.lifecycle import PlanManager


def _active(manager: PlanManager, quiz_id: str) -> list:
    return [
        p
        for p in manager.list_plans(quiz_id)
        if p.status in (PlanStatus.APPROVED, PlanStatus.USED)
    ]


class TestCreatePlan:
    """Test plan creation."""

    def test_defaults_to_questions_per_objective(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that the default total is 3 questions per objective."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")

        assert plan.total_questions == 9
        assert plan.questions_per_objective == 3
        assert plan.status == PlanStatus.DRAFT
        assert [b.objective_id for b in plan.breakdown] == ["lo-1", "lo-2", "lo-3"]

    def test_explicit_total(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that an explicit total is met exactly."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="gamify", total_questions=14)

        assert plan.total_questions == 14
        assert plan.questions_per_objective == 5

    def test_unknown_approach(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that an unknown approach is rejected."""
        with pytest.raises(TemplateNotFoundError):
            plan_manager.create_plan(sample_quiz, approach_id="lecture")

    def test_quiz_without_objectives(self, plan_manager: PlanManager):
        """Test that a quiz needs objectives to be planned."""
        with pytest.raises(PlanningError):
            plan_manager.create_plan(Quiz(name="Empty"))

    def test_custom_formula(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a custom formula produces a 'custom' plan with its own total."""
        formula = CustomFormula(
            question_types=[CustomTypeSpec(type=QuestionType.CLOZE, count=2)]
        )

        plan = plan_manager.create_plan(sample_quiz, custom_formula=formula)

        assert plan.approach_id == CUSTOM_APPROACH
        assert plan.total_questions == 6
        assert plan.custom_formula == formula

    def test_plan_is_persisted(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that created plans can be fetched again."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="support")

        assert plan_manager.get_plan(plan.id).breakdown == plan.breakdown


class TestApprove:
    """Test plan approval."""

    def test_approve_demotes_other_plans(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that only one plan per quiz is ever active."""
        first = plan_manager.create_plan(sample_quiz, approach_id="assess")
        second = plan_manager.create_plan(sample_quiz, approach_id="support")

        plan_manager.approve(first.id)
        plan_manager.approve(second.id)

        active = _active(plan_manager, sample_quiz.id)
        assert [p.id for p in active] == [second.id]
        assert plan_manager.get_plan(first.id).status == PlanStatus.DRAFT

    def test_get_active_plan(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test fetching the active plan of a quiz."""
        assert plan_manager.get_active_plan(sample_quiz.id) is None

        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(plan.id)

        assert plan_manager.get_active_plan(sample_quiz.id).id == plan.id

    def test_approve_demotes_used_plan(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a new approval replaces a used plan as the active one."""
        old = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(old.id)
        plan_manager.mark_used(old.id)

        new = plan_manager.create_plan(sample_quiz, approach_id="gamify")
        plan_manager.approve(new.id)

        assert [p.id for p in _active(plan_manager, sample_quiz.id)] == [new.id]

    def test_used_plan_cannot_be_approved(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a consumed plan stays consumed."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(plan.id)
        plan_manager.mark_used(plan.id)

        with pytest.raises(PlanStateError):
            plan_manager.approve(plan.id)

    def test_demoted_used_plan_stays_consumed(
        self, plan_manager: PlanManager, sample_quiz: Quiz
    ):
        """Test that a used plan demoted by a newer approval cannot be approved again."""
        old = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(old.id)
        plan_manager.mark_used(old.id)
        new = plan_manager.create_plan(sample_quiz, approach_id="gamify")
        plan_manager.approve(new.id)

        demoted = plan_manager.get_plan(old.id)
        assert demoted.status == PlanStatus.DRAFT
        assert demoted.is_consumed

        with pytest.raises(PlanStateError):
            plan_manager.approve(old.id)
        with pytest.raises(PlanStateError):
            plan_manager.update_breakdown(old.id, demoted.breakdown)
        assert plan_manager.get_active_plan(sample_quiz.id).id == new.id

    def test_unknown_plan(self, plan_manager: PlanManager):
        """Test that approving a missing plan raises PlanNotFoundError."""
        with pytest.raises(PlanNotFoundError):
            plan_manager.approve("missing")


class TestUpdateBreakdown:
    """Test user edits of a plan's breakdown."""

    def _edit(self) -> list[ObjectiveBreakdown]:
        return [
            ObjectiveBreakdown(
                objective_id="lo-1",
                type_counts=[TypeCount(type=QuestionType.MULTIPLE_CHOICE, count=5)],
            ),
            ObjectiveBreakdown(
                objective_id="lo-2",
                type_counts=[TypeCount(type=QuestionType.TRUE_FALSE, count=2)],
            ),
            ObjectiveBreakdown(
                objective_id="lo-3",
                type_counts=[TypeCount(type=QuestionType.TRUE_FALSE, count=1)],
            ),
        ]

    def test_total_and_history_follow_edit(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that an edit recomputes the total and appends one record."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess", total_questions=10)
        previous = plan.breakdown

        updated = plan_manager.update_breakdown(plan.id, self._edit(), editor="alex")

        assert updated.total_questions == 8
        assert updated.status == PlanStatus.MODIFIED
        assert len(updated.modifications) == 1
        assert updated.modifications[0].modified_by == "alex"
        assert updated.modifications[0].previous_breakdown == previous
        assert {d.type: d.total_count for d in updated.distribution} == {
            QuestionType.MULTIPLE_CHOICE: 5,
            QuestionType.TRUE_FALSE: 3,
        }
        assert plan_manager.get_plan(plan.id).total_questions == 8

    def test_each_edit_appends_one_record(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that history grows by exactly one per edit."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")

        plan_manager.update_breakdown(plan.id, self._edit())
        second = self._edit()
        second[0].type_counts[0].count = 2
        updated = plan_manager.update_breakdown(plan.id, second)

        assert len(updated.modifications) == 2
        assert updated.total_questions == 5

    def test_used_plan_rejects_edits(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a used plan cannot be edited."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(plan.id)
        plan_manager.mark_used(plan.id)

        with pytest.raises(PlanStateError):
            plan_manager.update_breakdown(plan.id, self._edit())

    def test_duplicate_objectives_rejected(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that an objective may appear once per breakdown."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        edit = self._edit() + self._edit()[:1]

        with pytest.raises(PlanningError):
            plan_manager.update_breakdown(plan.id, edit)

    def test_objective_without_questions_rejected(
        self, plan_manager: PlanManager, sample_quiz: Quiz
    ):
        """Test that an edit cannot leave an objective with zero questions."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess", total_questions=6)
        edit = self._edit()
        edit[2].type_counts[0].count = 0

        with pytest.raises(PlanningError):
            plan_manager.update_breakdown(plan.id, edit)

        stored = plan_manager.get_plan(plan.id)
        assert stored.total_questions == 6
        assert stored.modifications == []

    def test_edit_must_cover_every_objective(
        self, plan_manager: PlanManager, sample_quiz: Quiz
    ):
        """Test that an edit may neither drop nor invent objectives."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        unknown = self._edit()
        unknown[2].objective_id = "lo-9"

        with pytest.raises(PlanningError):
            plan_manager.update_breakdown(plan.id, self._edit()[:2])
        with pytest.raises(PlanningError):
            plan_manager.update_breakdown(plan.id, unknown)


class TestMarkUsedAndDelete:
    """Test consumption and deletion rules."""

    def test_mark_used_requires_approval(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a draft plan cannot be consumed."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")

        with pytest.raises(PlanStateError):
            plan_manager.mark_used(plan.id)

    def test_mark_used_is_idempotent(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that marking a used plan again is a no-op."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(plan.id)

        plan_manager.mark_used(plan.id)
        again = plan_manager.mark_used(plan.id)

        assert again.status == PlanStatus.USED
        assert again.used_at is not None

    def test_delete_draft(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that a draft plan can be deleted."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")

        plan_manager.delete_plan(plan.id)

        with pytest.raises(PlanNotFoundError):
            plan_manager.get_plan(plan.id)

    def test_delete_active_plan_rejected(self, plan_manager: PlanManager, sample_quiz: Quiz):
        """Test that the active plan cannot be deleted."""
        plan = plan_manager.create_plan(sample_quiz, approach_id="assess")
        plan_manager.approve(plan.id)

        with pytest.raises(PlanStateError):
            plan_manager.delete_plan(plan.id)
