"""Generation plan lifecycle - create, edit, approve and consume plans."""

import logging
import math
import threading
from datetime import datetime

from quizgen.config.settings import Settings, get_settings
from quizgen.errors import PlanStateError, PlanningError
from quizgen.models.plan import (
    CUSTOM_APPROACH,
    CustomFormula,
    GenerationPlan,
    ObjectiveBreakdown,
    PlanStatus,
    breakdown_total,
)
from quizgen.models.quiz import Quiz
from quizgen.planning.distribution import plan_distribution
from quizgen.planning.templates import ApproachTemplateRegistry, default_registry
from quizgen.storage.memory import InMemoryPlanRepository

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (PlanStatus.APPROVED, PlanStatus.USED)


class PlanManager:
    """
    Owns every status transition of a generation plan.

    At most one plan per quiz is approved or used at any time; approving a
    plan demotes the others of the same quiz back to draft. A plan consumed
    by a run keeps its ``used_at`` after demotion and can never be approved
    or edited again.
    """

    def __init__(
        self,
        repository: InMemoryPlanRepository | None = None,
        registry: ApproachTemplateRegistry | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository or InMemoryPlanRepository()
        self.registry = registry or default_registry()
        self.settings = settings or get_settings()
        self._lock = threading.RLock()

    def create_plan(
        self,
        quiz: Quiz,
        approach_id: str = "support",
        total_questions: int | None = None,
        questions_per_objective: int | None = None,
        custom_formula: CustomFormula | None = None,
        created_by: str | None = None,
    ) -> GenerationPlan:
        """
        Plan a quiz's questions and store the result as a draft.

        Args:
            quiz: Quiz whose learning objectives are planned
            approach_id: Approach template id, ignored when a custom formula is given
            total_questions: Exact total; defaults to questions_per_objective x objectives
            questions_per_objective: Average load per objective
            custom_formula: User formula replacing the template
            created_by: Author of the plan

        Returns:
            The stored draft plan

        Raises:
            TemplateNotFoundError: if the approach is unknown
            PlanningError: if the breakdown cannot satisfy the constraints
        """
        objective_ids = quiz.objective_ids
        if not objective_ids:
            raise PlanningError(f"Quiz {quiz.id} has no learning objectives to plan for")

        template = None
        if custom_formula is not None:
            approach_id = CUSTOM_APPROACH
        else:
            template = self.registry.get_template(approach_id)

        # A count-mode formula fixes its own total
        counts_formula = custom_formula is not None and not custom_formula.uses_percentages
        if total_questions is None and not counts_formula:
            if custom_formula is not None and custom_formula.total_questions:
                total_questions = custom_formula.total_questions
            else:
                per_objective = (
                    questions_per_objective or self.settings.default_questions_per_objective
                )
                total_questions = per_objective * len(objective_ids)

        breakdown = plan_distribution(
            objective_ids,
            total_questions=total_questions,
            template=template,
            custom_formula=custom_formula,
        )
        total = breakdown_total(breakdown)

        plan = GenerationPlan(
            quiz_id=quiz.id,
            approach_id=approach_id,
            questions_per_objective=questions_per_objective
            or max(1, math.ceil(total / len(objective_ids))),
            total_questions=total,
            breakdown=breakdown,
            custom_formula=custom_formula,
            created_by=created_by,
        )
        self.repository.save(plan)
        logger.info(
            "Created %s plan %s for quiz %s with %d question(s)",
            approach_id,
            plan.id,
            quiz.id,
            total,
        )
        return plan

    def get_plan(self, plan_id: str) -> GenerationPlan:
        return self.repository.get(plan_id)

    def list_plans(self, quiz_id: str) -> list[GenerationPlan]:
        return self.repository.list_for_quiz(quiz_id)

    def get_active_plan(self, quiz_id: str) -> GenerationPlan | None:
        """The most recently updated approved or used plan of a quiz."""
        active = [p for p in self.list_plans(quiz_id) if p.status in ACTIVE_STATUSES]
        if not active:
            return None
        return max(active, key=lambda p: p.updated_at)

    def approve(self, plan_id: str) -> GenerationPlan:
        """
        Make a plan the quiz's active plan.

        Raises:
            PlanStateError: if the plan was already consumed by a run
        """
        with self._lock:
            plan = self.repository.get(plan_id)
            if plan.is_consumed:
                raise PlanStateError(f"Plan {plan_id} was already used; create a new plan")

            for other in self.repository.list_for_quiz(plan.quiz_id):
                if other.id != plan.id and other.status in ACTIVE_STATUSES:
                    other.status = PlanStatus.DRAFT
                    other.updated_at = datetime.now()
                    self.repository.save(other)
                    logger.info("Demoted plan %s of quiz %s to draft", other.id, other.quiz_id)

            plan.status = PlanStatus.APPROVED
            plan.updated_at = datetime.now()
            self.repository.save(plan)

        logger.info("Approved plan %s for quiz %s", plan.id, plan.quiz_id)
        return plan

    def update_breakdown(
        self,
        plan_id: str,
        new_breakdown: list[ObjectiveBreakdown],
        editor: str | None = None,
        description: str = "Breakdown updated",
    ) -> GenerationPlan:
        """
        Replace a plan's breakdown with a user edit.

        The total and distribution follow the new cells and one modification
        record is appended.

        Raises:
            PlanStateError: if the plan was already used
            PlanningError: if the new breakdown repeats, drops or adds an
                objective, or leaves one without questions
        """
        objective_ids = [entry.objective_id for entry in new_breakdown]
        if len(set(objective_ids)) != len(objective_ids):
            raise PlanningError("Each learning objective may appear once in a breakdown")

        empty = [entry.objective_id for entry in new_breakdown if entry.total == 0]
        if empty:
            raise PlanningError(
                f"Every learning objective needs at least one question: {', '.join(empty)}"
            )

        with self._lock:
            plan = self.repository.get(plan_id)
            if plan.is_consumed:
                raise PlanStateError(f"Plan {plan_id} was already used and cannot be edited")

            planned = {entry.objective_id for entry in plan.breakdown}
            if set(objective_ids) != planned:
                missing = sorted(planned - set(objective_ids))
                unknown = sorted(set(objective_ids) - planned)
                raise PlanningError(
                    f"Breakdown must cover the plan's objectives exactly "
                    f"(missing: {', '.join(missing) or 'none'}, unknown: {', '.join(unknown) or 'none'})"
                )

            plan.replace_breakdown(new_breakdown, modified_by=editor, description=description)
            self.repository.save(plan)

        logger.info(
            "Plan %s breakdown updated by %s, total is now %d",
            plan.id,
            editor or "unknown",
            plan.total_questions,
        )
        return plan

    def mark_used(self, plan_id: str) -> GenerationPlan:
        """Record that a generation run consumed the plan."""
        with self._lock:
            plan = self.repository.get(plan_id)
            if plan.status == PlanStatus.USED:
                return plan
            if plan.status != PlanStatus.APPROVED:
                raise PlanStateError(
                    f"Only an approved plan can be used; plan {plan_id} is {plan.status.value}"
                )
            plan.status = PlanStatus.USED
            plan.updated_at = datetime.now()
            plan.used_at = plan.updated_at
            self.repository.save(plan)
        logger.info("Plan %s marked as used", plan_id)
        return plan

    def delete_plan(self, plan_id: str) -> None:
        """
        Remove a plan that is not the quiz's active plan.

        Raises:
            PlanStateError: if the plan is approved or used
        """
        with self._lock:
            plan = self.repository.get(plan_id)
            if plan.status in ACTIVE_STATUSES:
                raise PlanStateError(f"Cannot delete active plan {plan_id}")
            self.repository.delete(plan_id)
        logger.info("Deleted plan %s", plan_id)
