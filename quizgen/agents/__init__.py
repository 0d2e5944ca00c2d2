"""Workflow nodes for a question generation run."""

from .coordinator import complete_run, fail_run
from .loader import build_course_context, load_run
from .objective import FALLBACK_TYPES, process_objective, resolve_requests

__all__ = [
    "load_run",
    "process_objective",
    "complete_run",
    "fail_run",
    "build_course_context",
    "resolve_requests",
    "FALLBACK_TYPES",
]
