"""Completion Coordinator - folds objective results into the run result."""

import logging
from datetime import datetime
from typing import Any

from langchain_core.runnables import RunnableConfig

from quizgen.errors import QuizGenError
from quizgen.graph.state import RunState, get_services
from quizgen.models.events import BatchComplete, ErrorEvent
from quizgen.models.run import GenerationRunResult, RunError, RunErrorType, RunSummary

logger = logging.getLogger(__name__)


def complete_run(state: RunState, config: RunnableConfig) -> dict[str, Any]:
    """
    Coordinator: aggregate every objective result and close out the plan.

    The plan is marked used only when it drove the whole run, i.e. no
    breakdown override was given and the consumer did not cancel.

    Args:
        state: Run state with the accumulated objective_results
        config: Runnable config carrying the run services

    Returns:
        Dictionary with the final GenerationRunResult
    """
    services = get_services(config)
    quiz = state["quiz"]
    plan = state["plan"]
    results = state["objective_results"]
    cancelled = state.get("cancelled", False)
    finished_at = datetime.now()

    questions = [q for r in results for q in r.questions]
    errors = [e for r in results for e in r.errors]
    warnings = [w for r in results for w in r.warnings]

    summary = RunSummary(
        total_objectives=len(state["objective_ids"]),
        processed_objectives=len(results),
        failed_objectives=sum(1 for r in results if r.generated_count == 0),
        total_requested=sum(r.requested_count for r in results),
        total_generated=len(questions),
        error_count=len(errors),
        warning_count=len(warnings),
        materials_used=len(quiz.processed_materials),
        course_context=state["course_context"],
        duration_seconds=(finished_at - state["started_at"]).total_seconds(),
    )

    if state.get("breakdown_override") is None and not cancelled:
        try:
            services.plans.mark_used(plan.id)
        except QuizGenError as e:
            # Plan may have been edited or deleted mid-run
            logger.warning("Could not mark plan %s as used: %s", plan.id, e)

    result = GenerationRunResult(
        success=True,
        quiz_id=quiz.id,
        plan_id=plan.id,
        questions=questions,
        errors=errors,
        warnings=warnings,
        objective_results=results,
        summary=summary,
        cancelled=cancelled,
        started_at=state["started_at"],
        finished_at=finished_at,
    )

    logger.info(
        "Generation run for quiz %s finished: %d/%d question(s), %d error(s)%s",
        quiz.id,
        summary.total_generated,
        summary.total_requested,
        summary.error_count,
        " (cancelled)" if cancelled else "",
    )
    services.emit(BatchComplete(success=True, summary=summary, errors=errors))

    return {"result": result}


def fail_run(state: RunState, config: RunnableConfig) -> dict[str, Any]:
    """Terminal node for a run whose quiz or plan could not be loaded."""
    services = get_services(config)
    message = state.get("load_error") or "Generation run could not be loaded"
    error = RunError(error_type=RunErrorType.LOAD_ERROR, message=message)

    services.emit(ErrorEvent(message=message, error_type=error.error_type.value))

    finished_at = datetime.now()
    summary = RunSummary(duration_seconds=(finished_at - state["started_at"]).total_seconds())
    services.emit(BatchComplete(success=False, summary=summary, errors=[error]))

    result = GenerationRunResult(
        success=False,
        quiz_id=state["quiz_id"],
        errors=[error],
        summary=summary,
        started_at=state["started_at"],
        finished_at=finished_at,
    )
    return {"result": result}
