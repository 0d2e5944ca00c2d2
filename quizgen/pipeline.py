"""Entry point that runs the generation workflow for a quiz."""

import logging
import threading
import uuid
from collections.abc import Iterator

from quizgen.config.settings import Settings, get_settings
from quizgen.errors import QuizNotFoundError
from quizgen.gateways.base import GenerationGateway, RetrievalGateway
from quizgen.graph.state import RunServices, create_initial_state
from quizgen.graph.workflow import compile_workflow
from quizgen.models.events import BaseEvent, BatchComplete, Connected, ErrorEvent
from quizgen.models.plan import ObjectiveBreakdown
from quizgen.models.run import GenerationRunResult, RunSummary
from quizgen.planning.lifecycle import PlanManager
from quizgen.storage.memory import InMemoryQuizRepository
from quizgen.streaming.channel import EventChannel

logger = logging.getLogger(__name__)

# load, complete and a cancelled objective step on top of one step per objective
_FIXED_STEPS = 3


class QuestionGenerationPipeline:
    """
    Run the plan-driven generation workflow against a quiz.

    ``run`` blocks and returns the aggregated result. ``stream`` runs the
    same workflow on a background thread and yields its progress events.
    """

    def __init__(
        self,
        quizzes: InMemoryQuizRepository,
        plans: PlanManager,
        retrieval: RetrievalGateway,
        generation: GenerationGateway,
        settings: Settings | None = None,
    ):
        self.quizzes = quizzes
        self.plans = plans
        self.retrieval = retrieval
        self.generation = generation
        self.settings = settings or get_settings()
        self.workflow = compile_workflow()

    def run(
        self,
        quiz_id: str,
        channel: EventChannel | None = None,
        breakdown_override: list[ObjectiveBreakdown] | None = None,
    ) -> GenerationRunResult:
        """
        Generate questions for every objective of a quiz.

        Args:
            quiz_id: Quiz to generate for; its active plan drives the run
            channel: Optional channel receiving progress events
            breakdown_override: Cells to generate instead of the plan's,
                e.g. ``GenerationRunResult.failed_cells()`` of an earlier run

        Returns:
            GenerationRunResult; ``success`` is False only when loading failed
        """
        services = RunServices(
            quizzes=self.quizzes,
            plans=self.plans,
            retrieval=self.retrieval,
            generation=self.generation,
            settings=self.settings,
            channel=channel,
        )
        state = create_initial_state(quiz_id, breakdown_override)
        logger.info("Starting generation run for quiz %s", quiz_id)

        final_state = self.workflow.invoke(
            state,
            config={
                "configurable": {"services": services},
                "recursion_limit": self.recursion_limit(quiz_id),
            },
        )
        return final_state["result"]

    def recursion_limit(self, quiz_id: str) -> int:
        """Workflow step budget: the configured floor or one step per objective."""
        try:
            objective_count = len(self.quizzes.get(quiz_id).objectives)
        except QuizNotFoundError:
            # The loader reports the missing quiz
            return self.settings.max_workflow_steps
        return max(self.settings.max_workflow_steps, objective_count + _FIXED_STEPS)

    def stream(
        self,
        quiz_id: str,
        breakdown_override: list[ObjectiveBreakdown] | None = None,
        session_id: str | None = None,
    ) -> Iterator[BaseEvent]:
        """
        Run the workflow in the background and yield its events as they happen.

        Closing the generator early cancels the run before its next objective.

        Yields:
            Connected first, then run events with heartbeats while idle,
            ending with BatchComplete
        """
        channel = EventChannel()
        channel.publish(Connected(session_id=session_id or str(uuid.uuid4())))

        def produce() -> None:
            try:
                self.run(quiz_id, channel=channel, breakdown_override=breakdown_override)
            except Exception as e:
                logger.exception("Generation run for quiz %s crashed", quiz_id)
                channel.publish(ErrorEvent(message=str(e), error_type="generation-error"))
                channel.publish(BatchComplete(success=False, summary=RunSummary()))
            finally:
                channel.finish()

        worker = threading.Thread(target=produce, name=f"quizgen-run-{quiz_id}", daemon=True)
        worker.start()

        try:
            yield from channel.events(self.settings.heartbeat_interval_seconds)
        finally:
            channel.close()
