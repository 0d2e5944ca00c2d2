"""quizgen - plan-driven, retrieval-augmented quiz question generation."""

__version__ = "0.1.0"
