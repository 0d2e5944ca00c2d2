"""In-memory, thread-safe repositories for quizzes and generation plans."""

import threading

from quizgen.errors import PlanNotFoundError, QuizNotFoundError
from quizgen.models.plan import GenerationPlan
from quizgen.models.quiz import Quiz


class InMemoryQuizRepository:
    """Quizzes keyed by id. Returns deep copies so callers cannot mutate stored state."""

    def __init__(self, quizzes: list[Quiz] | None = None):
        self._quizzes: dict[str, Quiz] = {}
        self._lock = threading.Lock()
        for quiz in quizzes or []:
            self.save(quiz)

    def save(self, quiz: Quiz) -> Quiz:
        with self._lock:
            self._quizzes[quiz.id] = quiz.model_copy(deep=True)
        return quiz

    def get(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._quizzes.get(quiz_id)
            if quiz is None:
                raise QuizNotFoundError(quiz_id)
            return quiz.model_copy(deep=True)


class InMemoryPlanRepository:
    """Generation plans keyed by id, queryable by quiz."""

    def __init__(self):
        self._plans: dict[str, GenerationPlan] = {}
        self._lock = threading.Lock()

    def save(self, plan: GenerationPlan) -> GenerationPlan:
        with self._lock:
            self._plans[plan.id] = plan.model_copy(deep=True)
        return plan

    def get(self, plan_id: str) -> GenerationPlan:
        with self._lock:
            plan = self._plans.get(plan_id)
            if plan is None:
                raise PlanNotFoundError(plan_id)
            return plan.model_copy(deep=True)

    def delete(self, plan_id: str) -> None:
        with self._lock:
            if self._plans.pop(plan_id, None) is None:
                raise PlanNotFoundError(plan_id)

    def list_for_quiz(self, quiz_id: str) -> list[GenerationPlan]:
        """Plans of one quiz, newest first."""
        with self._lock:
            plans = [p.model_copy(deep=True) for p in self._plans.values() if p.quiz_id == quiz_id]
        return sorted(plans, key=lambda p: p.created_at, reverse=True)
