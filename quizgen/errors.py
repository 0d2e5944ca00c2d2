"""Exception hierarchy for plan building and question generation."""


class QuizGenError(Exception):
    """Base class for all quizgen errors."""


class PlanningError(QuizGenError):
    """The distribution cannot satisfy its constraints."""


class TemplateNotFoundError(QuizGenError):
    """No approach template is published under the requested id."""

    def __init__(self, approach_id: str):
        self.approach_id = approach_id
        super().__init__(f"No approach template found for '{approach_id}'")


class TemplateConflictError(QuizGenError):
    """An approach template with the same id is already published."""


class PlanNotFoundError(QuizGenError):
    """The generation plan does not exist."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Generation plan {plan_id} not found")


class PlanStateError(QuizGenError):
    """The requested transition is not allowed from the plan's current status."""


class QuizNotFoundError(QuizGenError):
    """The quiz does not exist."""

    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz {quiz_id} not found")


class RunLoadError(QuizGenError):
    """The quiz or its active plan could not be loaded for a generation run."""


class GenerationFatalError(QuizGenError):
    """The generation gateway call raised or timed out for one objective."""
