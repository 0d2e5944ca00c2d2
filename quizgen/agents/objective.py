"""Objective node - retrieves context and generates one objective's batch."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from langchain_core.runnables import RunnableConfig

from quizgen.errors import GenerationFatalError
from quizgen.graph.state import RunServices, RunState, get_services
from quizgen.models.events import BaseEvent, ErrorEvent, QuestionComplete, QuestionProgress
from quizgen.models.gateway import (
    ContentChunk,
    GenerationBatchResult,
    GenerationRequest,
    TypeRequest,
)
from quizgen.models.plan import ObjectiveBreakdown
from quizgen.models.quiz import LearningObjective, QuestionType
from quizgen.models.run import ObjectiveResult, RunError, RunErrorType

logger = logging.getLogger(__name__)

# Used when an objective has no cells in the plan
FALLBACK_TYPES = [
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.TRUE_FALSE,
    QuestionType.FLASHCARD,
    QuestionType.DISCUSSION,
    QuestionType.SUMMARY,
]


def resolve_requests(
    objective_id: str, breakdown: Sequence[ObjectiveBreakdown]
) -> tuple[list[TypeRequest], bool]:
    """
    The (type, count) cells to generate for an objective.

    Args:
        objective_id: Objective being processed
        breakdown: Plan breakdown or override cells

    Returns:
        Tuple of the requests and whether the fallback set was used
    """
    entry = next((b for b in breakdown if b.objective_id == objective_id), None)
    if entry is not None:
        requests = [TypeRequest(type=tc.type, count=tc.count) for tc in entry.type_counts if tc.count > 0]
        if requests:
            return requests, False
    return [TypeRequest(type=t, count=1) for t in FALLBACK_TYPES], True


class _ObjectivePublisher:
    """Forwards gateway events to the run channel until the objective is done."""

    def __init__(self, services: RunServices):
        self._services = services
        self.active = True

    def publish(self, event: BaseEvent) -> bool:
        if not self.active or self._services.channel is None:
            return False
        return self._services.channel.publish(event)


def _generate_with_timeout(
    services: RunServices,
    request: GenerationRequest,
    publisher: _ObjectivePublisher,
) -> GenerationBatchResult:
    timeout = services.settings.generation_timeout_seconds
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quizgen-generate")
    try:
        future = executor.submit(services.generation.generate_batch, request, publisher)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise GenerationFatalError(
                f"Generation timed out after {timeout:g}s for objective {request.objective_id}"
            ) from e
    finally:
        publisher.active = False
        executor.shutdown(wait=False, cancel_futures=True)


def _retrieve_context(
    services: RunServices,
    objective: LearningObjective,
    primary_type: QuestionType,
    material_ids: list[str],
    result: ObjectiveResult,
) -> list[ContentChunk]:
    settings = services.settings
    try:
        retrieved = services.retrieval.retrieve(
            objective.text,
            primary_type,
            top_k=settings.retrieval_top_k,
            material_ids=material_ids,
            min_score=settings.retrieval_min_score,
        )
        chunks = retrieved.chunks
    except Exception as e:
        logger.warning("Retrieval failed for objective %s: %s", objective.id, e)
        result.warnings.append(
            RunError(
                error_type=RunErrorType.RETRIEVAL_DEGRADED,
                message=f"Retrieval failed, generating without course material: {e}",
                objective_id=objective.id,
                objective_text=objective.text,
            )
        )
        return []

    if not chunks:
        logger.warning("No relevant content found for objective %s", objective.id)
        result.warnings.append(
            RunError(
                error_type=RunErrorType.RETRIEVAL_DEGRADED,
                message="No relevant course material found; generating from the objective only",
                objective_id=objective.id,
                objective_text=objective.text,
            )
        )
    return chunks


def process_objective(state: RunState, config: RunnableConfig) -> dict[str, Any]:
    """
    Objective worker: retrieve, generate and tag questions for the next objective.

    Failures are recorded on the objective's result; nothing raised here stops
    the run.

    Args:
        state: Current run state with the snapshots and cursor
        config: Runnable config carrying the run services

    Returns:
        Dictionary appending one ObjectiveResult and advancing the cursor
    """
    services = get_services(config)
    if services.cancelled:
        logger.info("Run for quiz %s cancelled by consumer", state["quiz_id"])
        return {"cancelled": True}

    quiz = state["quiz"]
    plan = state["plan"]
    cursor = state["cursor"]
    objective_ids = state["objective_ids"]
    objective = quiz.get_objective(objective_ids[cursor])
    total = len(objective_ids)
    position = cursor + 1

    override = state.get("breakdown_override")
    requests, used_fallback = resolve_requests(
        objective.id, override if override is not None else plan.breakdown
    )
    if used_fallback:
        logger.warning(
            "Objective %s has no planned cells; using the default question set", objective.id
        )

    result = ObjectiveResult(
        objective_id=objective.id,
        objective_text=objective.text,
        requested=requests,
    )

    def progress(status: str, **detail: Any) -> None:
        services.emit(
            QuestionProgress(
                objective_id=objective.id,
                status=status,
                objective_index=position,
                total_objectives=total,
                detail=detail,
            )
        )

    progress("started", objective_text=objective.text, requested=result.requested_count)

    try:
        progress("retrieving")
        chunks = _retrieve_context(
            services,
            objective,
            requests[0].type,
            [m.id for m in quiz.processed_materials],
            result,
        )
        result.context_chunks = len(chunks)

        request = GenerationRequest(
            objective_id=objective.id,
            objective_text=objective.text,
            requests=requests,
            context=chunks,
            difficulty=quiz.difficulty or services.settings.default_difficulty,
            course_context=state["course_context"],
        )

        progress("generating", context_chunks=len(chunks))
        batch = _generate_with_timeout(services, request, _ObjectivePublisher(services))

        for question in batch.questions:
            question.quiz_id = quiz.id
            question.objective_id = objective.id
            question.objective_text = objective.text
            result.questions.append(question)
            services.emit(
                QuestionComplete(question_id=question.id, objective_id=objective.id, question=question)
            )

        for batch_error in batch.errors:
            produced = sum(1 for q in batch.questions if q.type == batch_error.question_type)
            requested = next(
                (r.count for r in requests if r.type == batch_error.question_type), 0
            )
            result.errors.append(
                RunError(
                    error_type=RunErrorType.GENERATION_PARTIAL,
                    message=batch_error.message,
                    objective_id=objective.id,
                    objective_text=objective.text,
                    question_type=batch_error.question_type,
                    missing_count=max(requested - produced, 0),
                )
            )

        reported = sum(e.missing_count for e in result.errors)
        unreported = result.requested_count - result.generated_count - reported
        if unreported > 0:
            result.errors.append(
                RunError(
                    error_type=RunErrorType.GENERATION_PARTIAL,
                    message=(
                        f"Generated {result.generated_count} of {result.requested_count} "
                        f"question(s); {unreported} missing without a reported cause"
                    ),
                    objective_id=objective.id,
                    objective_text=objective.text,
                    missing_count=unreported,
                )
            )

    except Exception as e:
        logger.error("Generation failed for objective %s: %s", objective.id, e)
        result.errors.append(
            RunError(
                error_type=RunErrorType.GENERATION_ERROR,
                message=str(e),
                objective_id=objective.id,
                objective_text=objective.text,
                missing_count=result.requested_count - result.generated_count,
            )
        )

    for error in result.errors:
        question_id = objective.id
        if error.question_type is not None:
            question_id = f"{objective.id}:{error.question_type.value}"
        services.emit(
            ErrorEvent(question_id=question_id, message=error.message, error_type=error.error_type.value)
        )

    progress(
        "completed" if result.ok else "failed",
        generated=result.generated_count,
        requested=result.requested_count,
    )
    logger.info(
        "Objective %d/%d (%s): %d/%d question(s), %d error(s), %d warning(s)",
        position,
        total,
        objective.id,
        result.generated_count,
        result.requested_count,
        len(result.errors),
        len(result.warnings),
    )

    return {"objective_results": [result], "cursor": position}
