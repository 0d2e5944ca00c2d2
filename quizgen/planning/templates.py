"""Approach template registry - pedagogical rules that shape a plan."""

import logging
import threading
from functools import lru_cache

from pydantic import BaseModel, Field, model_validator

from quizgen.errors import TemplateConflictError, TemplateNotFoundError
from quizgen.models.quiz import QuestionType

logger = logging.getLogger(__name__)


class ApproachTemplate(BaseModel):
    """Question-type rules for one pedagogical approach. Immutable once published."""

    approach_id: str = Field(..., min_length=1)
    allowed_types: frozenset[QuestionType] = Field(..., min_length=1)
    target_ratios: dict[QuestionType, float] = Field(default_factory=dict)
    max_per_objective: dict[QuestionType, int] = Field(default_factory=dict)
    strategy_text: str = ""
    description: str = ""

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_rules(self) -> "ApproachTemplate":
        """Ratios and caps may only mention allowed types and must be non-negative."""
        for question_type, ratio in self.target_ratios.items():
            if question_type not in self.allowed_types:
                raise ValueError(f"Ratio given for disallowed type {question_type.value}")
            if ratio < 0:
                raise ValueError(f"Ratio for {question_type.value} must be >= 0")
        for question_type, cap in self.max_per_objective.items():
            if question_type not in self.allowed_types:
                raise ValueError(f"Cap given for disallowed type {question_type.value}")
            if cap < 0:
                raise ValueError(f"Cap for {question_type.value} must be >= 0")
        return self

    def ordered_types(self) -> list[QuestionType]:
        """Allowed types, highest target ratio first, then by type value."""
        return sorted(
            self.allowed_types,
            key=lambda t: (-self.target_ratios.get(t, 0.0), t.value),
        )

    def cap_for(self, question_type: QuestionType) -> int | None:
        return self.max_per_objective.get(question_type)


TYPE_REASONING: dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: (
        "Multiple choice questions provide clear assessment with immediate feedback, "
        "suitable for the {approach} approach"
    ),
    QuestionType.TRUE_FALSE: (
        "True/false questions test basic understanding and work well for quick "
        "comprehension checks"
    ),
    QuestionType.FLASHCARD: "Flashcards support active recall and spaced repetition learning",
    QuestionType.SUMMARY: "Summary questions encourage synthesis and deeper understanding",
    QuestionType.DISCUSSION: "Discussion prompts foster critical thinking and analysis",
    QuestionType.MATCHING: "Matching exercises help connect related concepts in an engaging way",
    QuestionType.ORDERING: "Ordering questions test understanding of sequences and relationships",
    QuestionType.CLOZE: "Fill-in-the-blank questions test specific knowledge retention",
}


def reasoning_for(question_type: QuestionType, approach_id: str) -> str:
    """Default rationale attached to a planned cell."""
    template = TYPE_REASONING.get(question_type, "Selected to support learning objectives")
    return template.format(approach=approach_id)


class ApproachTemplateRegistry:
    """Published approach templates, keyed by approach id."""

    def __init__(self, templates: list[ApproachTemplate] | None = None):
        self._templates: dict[str, ApproachTemplate] = {}
        self._lock = threading.Lock()
        for template in templates or []:
            self.register(template)

    def register(self, template: ApproachTemplate) -> ApproachTemplate:
        """
        Publish a template.

        Raises:
            TemplateConflictError: if the approach id is already published
        """
        with self._lock:
            if template.approach_id in self._templates:
                raise TemplateConflictError(
                    f"Approach template '{template.approach_id}' is already published"
                )
            self._templates[template.approach_id] = template
        logger.debug("Registered approach template %s", template.approach_id)
        return template

    def get_template(self, approach_id: str) -> ApproachTemplate:
        """
        Look up a published template.

        Raises:
            TemplateNotFoundError: if no template uses that id
        """
        try:
            return self._templates[approach_id]
        except KeyError:
            raise TemplateNotFoundError(approach_id) from None

    def list_templates(self) -> list[ApproachTemplate]:
        return list(self._templates.values())

    def __contains__(self, approach_id: str) -> bool:
        return approach_id in self._templates


SUPPORT_TEMPLATE = ApproachTemplate(
    approach_id="support",
    allowed_types=frozenset({QuestionType.FLASHCARD, QuestionType.SUMMARY}),
    target_ratios={QuestionType.FLASHCARD: 0.85, QuestionType.SUMMARY: 0.15},
    max_per_objective={QuestionType.SUMMARY: 1},
    strategy_text=(
        "Support learning through memorization and understanding. Flashcards are the "
        "majority and cover key terms, definitions and concepts; summaries are the "
        "minority and ask for synthesis. At most one summary per learning objective."
    ),
    description="Support Learning: flashcards and summaries",
)

ASSESS_TEMPLATE = ApproachTemplate(
    approach_id="assess",
    allowed_types=frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE}),
    target_ratios={QuestionType.MULTIPLE_CHOICE: 0.65, QuestionType.TRUE_FALSE: 0.35},
    strategy_text=(
        "Assess understanding. Multiple-choice questions probe complex understanding "
        "and application; true/false questions check fundamental concepts. Mix both "
        "types within each learning objective."
    ),
    description="Assess Understanding: multiple-choice and true/false",
)

GAMIFY_TEMPLATE = ApproachTemplate(
    approach_id="gamify",
    allowed_types=frozenset(
        {
            QuestionType.MATCHING,
            QuestionType.ORDERING,
            QuestionType.CLOZE,
            QuestionType.DISCUSSION,
        }
    ),
    target_ratios={
        QuestionType.MATCHING: 0.30,
        QuestionType.ORDERING: 0.25,
        QuestionType.CLOZE: 0.25,
        QuestionType.DISCUSSION: 0.20,
    },
    strategy_text=(
        "Gamify learning with interactive formats. Matching connects concepts, ordering "
        "covers sequences and hierarchies, cloze tests recall in context and discussion "
        "invites analysis. Avoid letting a single type dominate."
    ),
    description="Gamify Learning: matching, ordering, cloze and discussion",
)

DEFAULT_TEMPLATES = [SUPPORT_TEMPLATE, ASSESS_TEMPLATE, GAMIFY_TEMPLATE]


@lru_cache
def default_registry() -> ApproachTemplateRegistry:
    """Registry seeded with the built-in approaches, created once per process."""
    return ApproachTemplateRegistry(DEFAULT_TEMPLATES)
