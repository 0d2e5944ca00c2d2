"""Data models for plan-driven question generation."""

from .events import (
    BatchComplete,
    BatchStarted,
    Connected,
    ErrorEvent,
    Heartbeat,
    ProgressEvent,
    QuestionComplete,
    QuestionProgress,
    TextChunk,
    parse_event,
)
from .gateway import (
    BatchError,
    ContentChunk,
    GenerationBatchResult,
    GenerationRequest,
    RetrievalResult,
    TypeRequest,
)
from .plan import (
    CUSTOM_APPROACH,
    CustomFormula,
    CustomTypeSpec,
    DistributionEntry,
    GenerationPlan,
    ModificationRecord,
    ObjectiveBreakdown,
    PlanStatus,
    TypeCount,
    compute_distribution,
)
from .quiz import (
    LearningObjective,
    Material,
    ProcessingStatus,
    Question,
    QuestionDifficulty,
    QuestionType,
    Quiz,
)
from .run import (
    GenerationRunResult,
    ObjectiveResult,
    RunError,
    RunErrorType,
    RunSummary,
)

__all__ = [
    "Quiz",
    "LearningObjective",
    "Material",
    "ProcessingStatus",
    "Question",
    "QuestionType",
    "QuestionDifficulty",
    "GenerationPlan",
    "ObjectiveBreakdown",
    "TypeCount",
    "DistributionEntry",
    "ModificationRecord",
    "PlanStatus",
    "CustomFormula",
    "CustomTypeSpec",
    "CUSTOM_APPROACH",
    "compute_distribution",
    "ContentChunk",
    "RetrievalResult",
    "TypeRequest",
    "GenerationRequest",
    "GenerationBatchResult",
    "BatchError",
    "GenerationRunResult",
    "ObjectiveResult",
    "RunError",
    "RunErrorType",
    "RunSummary",
    # Stream events
    "ProgressEvent",
    "Connected",
    "BatchStarted",
    "QuestionProgress",
    "TextChunk",
    "QuestionComplete",
    "ErrorEvent",
    "Heartbeat",
    "BatchComplete",
    "parse_event",
]
