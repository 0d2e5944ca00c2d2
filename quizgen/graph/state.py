"""LangGraph state and run services for a question generation run."""

import operator
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, TypedDict

from langchain_core.runnables import RunnableConfig

from quizgen.config.settings import Settings
from quizgen.gateways.base import GenerationGateway, RetrievalGateway
from quizgen.models.events import BaseEvent
from quizgen.models.plan import GenerationPlan, ObjectiveBreakdown
from quizgen.models.quiz import Quiz
from quizgen.models.run import GenerationRunResult, ObjectiveResult
from quizgen.planning.lifecycle import PlanManager
from quizgen.storage.memory import InMemoryQuizRepository
from quizgen.streaming.channel import EventChannel


class RunState(TypedDict):
    """State passed between nodes of the generation workflow."""

    # Input
    quiz_id: str
    breakdown_override: list[ObjectiveBreakdown] | None

    # Snapshots taken once by the loader
    quiz: Quiz | None
    plan: GenerationPlan | None
    objective_ids: list[str]
    course_context: str
    load_error: str | None

    # Progress
    cursor: int
    cancelled: bool
    objective_results: Annotated[list[ObjectiveResult], operator.add]

    # Output
    result: GenerationRunResult | None
    started_at: datetime


def create_initial_state(
    quiz_id: str,
    breakdown_override: list[ObjectiveBreakdown] | None = None,
) -> RunState:
    """
    Create the initial state for a generation run.

    Args:
        quiz_id: Quiz to generate questions for
        breakdown_override: Cells to generate instead of the active plan's

    Returns:
        RunState ready for the workflow
    """
    return RunState(
        quiz_id=quiz_id,
        breakdown_override=breakdown_override,
        quiz=None,
        plan=None,
        objective_ids=[],
        course_context="",
        load_error=None,
        cursor=0,
        cancelled=False,
        objective_results=[],
        result=None,
        started_at=datetime.now(),
    )


@dataclass
class RunServices:
    """Collaborators shared by the workflow nodes of one run."""

    quizzes: InMemoryQuizRepository
    plans: PlanManager
    retrieval: RetrievalGateway
    generation: GenerationGateway
    settings: Settings
    channel: EventChannel | None = None

    @property
    def cancelled(self) -> bool:
        return self.channel is not None and self.channel.closed

    def emit(self, event: BaseEvent) -> None:
        if self.channel is not None:
            self.channel.publish(event)


def get_services(config: RunnableConfig) -> RunServices:
    """Pull the run services out of a node's runnable config."""
    configurable: dict[str, Any] = config.get("configurable", {})
    return configurable["services"]
