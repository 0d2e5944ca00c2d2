"""Interfaces of the external services the pipeline consumes."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from quizgen.models.events import BaseEvent
from quizgen.models.gateway import GenerationBatchResult, GenerationRequest, RetrievalResult
from quizgen.models.quiz import QuestionType


@runtime_checkable
class EventPublisher(Protocol):
    """Anything that accepts typed progress events."""

    def publish(self, event: BaseEvent) -> bool: ...


@runtime_checkable
class RetrievalGateway(Protocol):
    """Ranked content lookup over already-indexed course materials."""

    def retrieve(
        self,
        query_text: str,
        question_type: QuestionType,
        *,
        top_k: int,
        material_ids: Sequence[str],
        min_score: float,
    ) -> RetrievalResult: ...


@runtime_checkable
class GenerationGateway(Protocol):
    """Batch question generation for one learning objective."""

    def generate_batch(
        self,
        request: GenerationRequest,
        events: EventPublisher | None = None,
    ) -> GenerationBatchResult: ...
