"""Distribution Planner - exact per-objective question breakdowns.

The planner turns a question total and an approach template (or a custom
formula) into a table of ``{objective x type -> count}`` cells:

1. Per-type totals come from the largest-remainder method over the
   template's normalized ratios. Equal remainders are broken by question
   type value, ascending, so identical input always gives identical output.
2. Each type's total is spread evenly over the objectives; the remainder
   goes to the first objectives in objective order.
3. ``max_per_objective`` caps are enforced by moving excess round-robin to
   objectives with spare capacity for the same type, then into other allowed
   types with spare capacity.
4. Every objective ends up with at least one question.
"""

import logging
import math
from collections.abc import Sequence

from quizgen.errors import PlanningError
from quizgen.models.plan import (
    CUSTOM_APPROACH,
    CustomFormula,
    ObjectiveBreakdown,
    TypeCount,
)
from quizgen.models.quiz import QuestionType
from quizgen.planning.templates import ApproachTemplate, reasoning_for

logger = logging.getLogger(__name__)

Grid = dict[str, dict[QuestionType, int]]

# Remainders are compared at this precision so float noise cannot decide a tie
_REMAINDER_PRECISION = 9


def spread_evenly(count: int, buckets: int) -> list[int]:
    """
    Split ``count`` into ``buckets`` near-equal parts.

    The first ``count % buckets`` buckets get one extra unit.
    """
    base, remainder = divmod(count, buckets)
    return [base + (1 if i < remainder else 0) for i in range(buckets)]


def allocate_type_totals(total: int, template: ApproachTemplate) -> dict[QuestionType, int]:
    """
    Split the grand total across the template's allowed types.

    Args:
        total: Number of questions for the whole quiz
        template: Template whose target ratios are approximated

    Returns:
        Mapping of type to count, summing exactly to ``total``
    """
    types = template.ordered_types()
    if len(types) == 1:
        return {types[0]: total}

    weights = {t: template.target_ratios.get(t, 0.0) for t in types}
    weight_sum = sum(weights.values())
    if weight_sum <= 0:
        # No usable ratios: treat every allowed type equally
        weights = {t: 1.0 for t in types}
        weight_sum = float(len(types))

    quotas = {t: total * weights[t] / weight_sum for t in types}
    counts = {t: math.floor(quotas[t]) for t in types}
    remainder = total - sum(counts.values())

    by_remainder = sorted(
        types,
        key=lambda t: (-round(quotas[t] - counts[t], _REMAINDER_PRECISION), t.value),
    )
    for question_type in by_remainder[:remainder]:
        counts[question_type] += 1

    return counts


def _objective_total(grid: Grid, objective_id: str) -> int:
    return sum(grid[objective_id].values())


def _has_capacity(
    grid: Grid, objective_id: str, question_type: QuestionType, template: ApproachTemplate
) -> bool:
    cap = template.cap_for(question_type)
    return cap is None or grid[objective_id].get(question_type, 0) < cap


def _place_round_robin(
    grid: Grid,
    objective_ids: Sequence[str],
    candidate_types: Sequence[QuestionType],
    template: ApproachTemplate,
    units: int,
) -> int:
    """Hand out ``units`` one at a time across objectives. Returns what could not be placed."""
    while units:
        placed = False
        for objective_id in objective_ids:
            if not units:
                break
            question_type = next(
                (t for t in candidate_types if _has_capacity(grid, objective_id, t, template)),
                None,
            )
            if question_type is None:
                continue
            grid[objective_id][question_type] = grid[objective_id].get(question_type, 0) + 1
            units -= 1
            placed = True
        if not placed:
            break
    return units


def enforce_caps(
    grid: Grid,
    objective_ids: Sequence[str],
    types: Sequence[QuestionType],
    template: ApproachTemplate,
) -> None:
    """
    Clamp every cell to its per-objective cap and re-home the excess.

    Raises:
        PlanningError: if the excess fits nowhere
    """
    overflow = 0
    for question_type in types:
        cap = template.cap_for(question_type)
        if cap is None:
            continue

        excess = 0
        for objective_id in objective_ids:
            count = grid[objective_id].get(question_type, 0)
            if count > cap:
                excess += count - cap
                grid[objective_id][question_type] = cap

        if excess:
            logger.debug(
                "Moving %d %s question(s) over the per-objective cap of %d",
                excess,
                question_type.value,
                cap,
            )
            overflow += _place_round_robin(grid, objective_ids, [question_type], template, excess)

    if overflow:
        overflow = _place_round_robin(grid, objective_ids, types, template, overflow)

    if overflow:
        raise PlanningError(
            f"Per-objective caps of the '{template.approach_id}' approach leave "
            f"{overflow} question(s) with nowhere to go"
        )


def ensure_coverage(
    grid: Grid, objective_ids: Sequence[str], types: Sequence[QuestionType]
) -> None:
    """
    Give every objective at least one question.

    An empty objective takes one unit from the largest cell of any objective
    holding more than one question (ties: earliest objective, then type order).
    """
    for objective_id in objective_ids:
        if _objective_total(grid, objective_id) > 0:
            continue

        donors = [
            (donor_id, question_type)
            for donor_id in objective_ids
            if _objective_total(grid, donor_id) > 1
            for question_type in types
            if grid[donor_id].get(question_type, 0) > 0
        ]
        if not donors:
            raise PlanningError(f"Cannot give objective {objective_id} at least one question")

        donor_id, question_type = max(
            donors,
            key=lambda cell: (
                grid[cell[0]][cell[1]],
                -objective_ids.index(cell[0]),
                -types.index(cell[1]),
            ),
        )
        grid[donor_id][question_type] -= 1
        grid[objective_id][question_type] = grid[objective_id].get(question_type, 0) + 1


def _template_from_percentages(formula: CustomFormula) -> ApproachTemplate:
    ratios: dict[QuestionType, float] = {}
    for spec in formula.question_types:
        if spec.percentage:
            ratios[spec.type] = ratios.get(spec.type, 0.0) + spec.percentage / 100
    if not ratios:
        raise PlanningError("Custom formula in percentage mode has no positive percentages")
    return ApproachTemplate(
        approach_id=CUSTOM_APPROACH,
        allowed_types=frozenset(ratios),
        target_ratios=ratios,
        description="Custom formula",
    )


def _grid_from_counts(
    formula: CustomFormula, objective_ids: Sequence[str]
) -> tuple[Grid, list[QuestionType], dict[QuestionType, str]]:
    grid: Grid = {objective_id: {} for objective_id in objective_ids}
    types: list[QuestionType] = []
    reasons: dict[QuestionType, str] = {}

    for spec in formula.question_types:
        if spec.count <= 0:
            continue
        if spec.scope == "per-objective":
            shares = [spec.count] * len(objective_ids)
            reasons.setdefault(
                spec.type, f"Custom formula: {spec.count} {spec.type.value} per objective"
            )
        else:
            shares = spread_evenly(spec.count, len(objective_ids))
            reasons.setdefault(
                spec.type, f"Whole quiz: {spec.count} {spec.type.value} questions"
            )
        if spec.type not in types:
            types.append(spec.type)
        for objective_id, share in zip(objective_ids, shares):
            grid[objective_id][spec.type] = grid[objective_id].get(spec.type, 0) + share

    return grid, types, reasons


def _to_breakdown(
    grid: Grid,
    objective_ids: Sequence[str],
    types: Sequence[QuestionType],
    reasons: dict[QuestionType, str],
) -> list[ObjectiveBreakdown]:
    return [
        ObjectiveBreakdown(
            objective_id=objective_id,
            type_counts=[
                TypeCount(type=t, count=grid[objective_id][t], reasoning=reasons.get(t))
                for t in types
                if grid[objective_id].get(t, 0) > 0
            ],
        )
        for objective_id in objective_ids
    ]


def _check_objectives(objective_ids: Sequence[str]) -> None:
    if not objective_ids:
        raise PlanningError("At least one learning objective is required to build a plan")
    if len(set(objective_ids)) != len(objective_ids):
        raise PlanningError("Learning objective ids must be unique")


def _check_total(total: int, objective_count: int) -> None:
    if total < objective_count:
        raise PlanningError(
            f"{total} question(s) cannot cover {objective_count} learning objectives; "
            "every objective needs at least one question"
        )


def plan_distribution(
    objective_ids: Sequence[str],
    total_questions: int | None = None,
    template: ApproachTemplate | None = None,
    custom_formula: CustomFormula | None = None,
) -> list[ObjectiveBreakdown]:
    """
    Compute the exact per-objective breakdown for a quiz.

    Args:
        objective_ids: Learning objective ids, in quiz order
        total_questions: Exact number of questions to plan
        template: Approach template supplying types, ratios and caps
        custom_formula: User formula used instead of a template

    Returns:
        One ObjectiveBreakdown per objective, in objective order

    Raises:
        PlanningError: if the constraints cannot be satisfied
    """
    objective_ids = list(objective_ids)
    _check_objectives(objective_ids)

    if custom_formula is not None and not custom_formula.uses_percentages:
        grid, types, reasons = _grid_from_counts(custom_formula, objective_ids)
        formula_total = sum(_objective_total(grid, o) for o in objective_ids)
        if total_questions is not None and total_questions != formula_total:
            raise PlanningError(
                f"Custom formula yields {formula_total} question(s) but "
                f"{total_questions} were requested"
            )
        _check_total(formula_total, len(objective_ids))
        ensure_coverage(grid, objective_ids, types)
        return _to_breakdown(grid, objective_ids, types, reasons)

    if custom_formula is not None:
        template = _template_from_percentages(custom_formula)
        if total_questions is None:
            total_questions = custom_formula.total_questions

    if template is None:
        raise PlanningError("Either an approach template or a custom formula is required")
    if total_questions is None:
        raise PlanningError("total_questions is required when planning from a template")
    _check_total(total_questions, len(objective_ids))

    types = template.ordered_types()
    type_totals = allocate_type_totals(total_questions, template)

    grid: Grid = {objective_id: {} for objective_id in objective_ids}
    for question_type in types:
        shares = spread_evenly(type_totals[question_type], len(objective_ids))
        for objective_id, share in zip(objective_ids, shares):
            grid[objective_id][question_type] = share

    enforce_caps(grid, objective_ids, types, template)
    ensure_coverage(grid, objective_ids, types)

    reasons = {t: reasoning_for(t, template.approach_id) for t in types}
    breakdown = _to_breakdown(grid, objective_ids, types, reasons)

    logger.info(
        "Planned %d question(s) over %d objective(s) with the '%s' approach (targets %s)",
        total_questions,
        len(objective_ids),
        template.approach_id,
        ", ".join(f"{t.value}={type_totals[t]}" for t in types),
    )
    return breakdown
