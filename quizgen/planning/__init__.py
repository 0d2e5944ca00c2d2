"""Approach templates, distribution planning and plan lifecycle."""

from .distribution import allocate_type_totals, plan_distribution, spread_evenly
from .lifecycle import PlanManager
from .templates import (
    ApproachTemplate,
    ApproachTemplateRegistry,
    default_registry,
    reasoning_for,
)

__all__ = [
    "ApproachTemplate",
    "ApproachTemplateRegistry",
    "default_registry",
    "reasoning_for",
    "plan_distribution",
    "allocate_type_totals",
    "spread_evenly",
    "PlanManager",
]
