"""LangGraph workflow definition for a question generation run."""

from typing import Literal

from langgraph.graph import END, StateGraph

from quizgen.agents.coordinator import complete_run, fail_run
from quizgen.agents.loader import load_run
from quizgen.agents.objective import process_objective
from quizgen.graph.state import RunState


def route_after_load(state: RunState) -> Literal["objective", "complete", "fail"]:
    """
    Decide where to go once the quiz and plan are loaded.

    Args:
        state: Current run state

    Returns:
        "fail" on a load error, "complete" when there is nothing to generate
    """
    if state.get("load_error"):
        return "fail"
    if not state["objective_ids"]:
        return "complete"
    return "objective"


def route_after_objective(state: RunState) -> Literal["objective", "complete"]:
    """Loop over objectives until they run out or the consumer cancels."""
    if state.get("cancelled", False):
        return "complete"
    if state["cursor"] < len(state["objective_ids"]):
        return "objective"
    return "complete"


def create_generation_workflow() -> StateGraph:
    """
    Create the LangGraph workflow for a generation run.

    The workflow follows this structure:
    1. Load - Snapshot quiz and active plan
    2. [Conditional] Fail if either is missing
    3. Objective - Retrieve and generate, one objective per step (self-loop)
    4. Complete - Aggregate results and mark the plan used

    Returns:
        StateGraph ready to compile
    """
    workflow = StateGraph(RunState)

    workflow.add_node("load", load_run)
    workflow.add_node("objective", process_objective)
    workflow.add_node("complete", complete_run)
    workflow.add_node("fail", fail_run)

    workflow.set_entry_point("load")

    workflow.add_conditional_edges(
        "load",
        route_after_load,
        {
            "objective": "objective",
            "complete": "complete",
            "fail": "fail",
        },
    )

    # Objective -> itself until every objective has been processed
    workflow.add_conditional_edges(
        "objective",
        route_after_objective,
        {
            "objective": "objective",
            "complete": "complete",
        },
    )

    workflow.add_edge("complete", END)
    workflow.add_edge("fail", END)

    return workflow


def compile_workflow():
    """
    Compile the workflow and return it ready for execution.

    Returns:
        Compiled workflow
    """
    workflow = create_generation_workflow()
    return workflow.compile()
