"""Persistence for quizzes and generation plans."""

from .memory import InMemoryPlanRepository, InMemoryQuizRepository

__all__ = ["InMemoryPlanRepository", "InMemoryQuizRepository"]
