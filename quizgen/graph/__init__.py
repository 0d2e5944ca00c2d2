"""LangGraph workflow and run state."""

# Note: Avoid importing workflow here to prevent circular imports
# Import directly from modules as needed:
# from quizgen.graph.state import RunState, RunServices, create_initial_state
# from quizgen.graph.workflow import compile_workflow, create_generation_workflow
