"""Loader node - snapshots the quiz and its active plan at run start."""

import logging
from typing import Any

from langchain_core.runnables import RunnableConfig

from quizgen.agents.objective import resolve_requests
from quizgen.errors import QuizNotFoundError, RunLoadError
from quizgen.graph.state import RunServices, RunState, get_services
from quizgen.models.events import BatchStarted
from quizgen.models.plan import GenerationPlan, PlanStatus
from quizgen.models.quiz import Quiz

logger = logging.getLogger(__name__)


def build_course_context(quiz: Quiz) -> str:
    """
    Short description of the quiz and its sources for the generator.

    Args:
        quiz: Quiz snapshot

    Returns:
        Context string such as "Quiz: X | Materials: pdf, url | Sources: a, b, c and others"
    """
    context = [f"Quiz: {quiz.name}"]

    materials = quiz.processed_materials
    if materials:
        material_types = list(dict.fromkeys(m.type for m in materials))
        context.append(f"Materials: {', '.join(material_types)}")

        names = [m.name for m in materials[:3]]
        suffix = " and others" if len(materials) > 3 else ""
        context.append(f"Sources: {', '.join(names)}{suffix}")

    return " | ".join(context)


def _load_snapshots(
    services: RunServices, quiz_id: str, has_override: bool
) -> tuple[Quiz, GenerationPlan]:
    try:
        quiz = services.quizzes.get(quiz_id)
    except QuizNotFoundError as e:
        raise RunLoadError(str(e)) from e

    plan = services.plans.get_active_plan(quiz_id)
    if plan is None:
        raise RunLoadError(f"Quiz {quiz_id} has no approved generation plan")

    if plan.status == PlanStatus.USED and not has_override:
        raise RunLoadError(f"Plan {plan.id} was already used; create a new plan to regenerate")

    return quiz, plan


def load_run(state: RunState, config: RunnableConfig) -> dict[str, Any]:
    """
    Loader: fetch the quiz and the plan that drives the run.

    Both are deep copies, so edits made while the run is in flight are not
    seen. A missing quiz or plan sets ``load_error`` and the workflow ends
    without generating anything.

    Args:
        state: Current run state containing quiz_id
        config: Runnable config carrying the run services

    Returns:
        Dictionary with the snapshots, objectives to process and course context
    """
    services = get_services(config)
    override = state.get("breakdown_override")

    try:
        quiz, plan = _load_snapshots(services, state["quiz_id"], override is not None)
    except RunLoadError as e:
        logger.error("Cannot start generation run: %s", e)
        return {"load_error": str(e)}

    if override is not None:
        requested_ids = {entry.objective_id for entry in override}
        objective_ids = [o.id for o in quiz.objectives if o.id in requested_ids]
        unknown = requested_ids - set(objective_ids)
        if unknown:
            logger.warning(
                "Ignoring override cells for unknown objective(s): %s", ", ".join(sorted(unknown))
            )
        source = override
    else:
        objective_ids = quiz.objective_ids
        source = plan.breakdown

    total_questions = 0
    question_types = []
    for objective_id in objective_ids:
        requests, _ = resolve_requests(objective_id, source)
        for request in requests:
            total_questions += request.count
            if request.type not in question_types:
                question_types.append(request.type)

    course_context = build_course_context(quiz)
    logger.info(
        "Loaded quiz %s: %d objective(s), %d processed material(s), plan %s (%s)",
        quiz.id,
        len(objective_ids),
        len(quiz.processed_materials),
        plan.id,
        plan.approach_id,
    )

    services.emit(
        BatchStarted(
            quiz_id=quiz.id,
            plan_id=plan.id,
            total_objectives=len(objective_ids),
            total_questions=total_questions,
            question_types=question_types,
        )
    )

    return {
        "quiz": quiz,
        "plan": plan,
        "objective_ids": objective_ids,
        "course_context": course_context,
        "cursor": 0,
    }
