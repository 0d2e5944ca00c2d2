"""Generation gateway - batch question writing with Claude on AWS Bedrock."""

import logging
from typing import Any

from langchain_aws import ChatBedrock
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import PydanticOutputParser
from pydantic import BaseModel, Field

from quizgen.config.settings import Settings, get_settings
from quizgen.gateways.base import EventPublisher
from quizgen.models.events import TextChunk
from quizgen.models.gateway import (
    BatchError,
    GenerationBatchResult,
    GenerationRequest,
)
from quizgen.models.quiz import Question, QuestionType

logger = logging.getLogger(__name__)


class QuestionDraft(BaseModel):
    """One question as written by the model."""

    type: QuestionType = Field(..., description="Question format")
    question_text: str = Field(..., description="The question or prompt text")
    options: list[str] = Field(
        default_factory=list,
        description="Answer options for multiple-choice, or statements to match",
    )
    correct_answer: str | None = Field(
        None,
        description="Correct answer, true/false value, flashcard back or cloze fill",
    )
    items: list[str] = Field(
        default_factory=list,
        description="Ordered sequence for ordering questions or 'left => right' matching pairs",
    )
    explanation: str | None = Field(None, description="Why the answer is correct")


class QuestionDraftList(BaseModel):
    """Structured output for one generation batch."""

    questions: list[QuestionDraft] = Field(..., description="Generated questions")


TYPE_GUIDANCE: dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: "4 options, exactly one correct, plausible distractors",
    QuestionType.TRUE_FALSE: "a single statement; correct_answer is 'true' or 'false'",
    QuestionType.FLASHCARD: "question_text is the front, correct_answer is the back",
    QuestionType.SUMMARY: "asks the learner to summarize; correct_answer is a model summary",
    QuestionType.DISCUSSION: "an open prompt; explanation lists points a good answer covers",
    QuestionType.MATCHING: "items are 'left => right' pairs",
    QuestionType.ORDERING: "items are the steps in their correct order",
    QuestionType.CLOZE: "question_text contains ___ blanks; correct_answer fills them",
}

SYSTEM_PROMPT = """You are an expert educational question writer. Create high-quality questions that assess a single learning objective.

Requirements:
- Produce exactly the number of questions requested for each question type
- Ground every question in the provided course material when it is available
- Questions must be clear, unambiguous and match the requested difficulty
- Avoid duplicating questions within the batch"""


def _format_context(request: GenerationRequest) -> str:
    if not request.context:
        return "No course material was retrieved; rely on the learning objective."
    return "\n\n".join(
        f"[{i}] {chunk.text}" for i, chunk in enumerate(request.context, start=1)
    )


def build_messages(request: GenerationRequest, format_instructions: str = "") -> list[BaseMessage]:
    """Prompt messages for one objective's batch."""
    request_lines = "\n".join(
        f"- {r.count} x {r.type.value}: {TYPE_GUIDANCE.get(r.type, '')}" for r in request.requests
    )
    user_prompt = f"""Learning objective: {request.objective_text}

Course context: {request.course_context or "n/a"}
Difficulty: {request.difficulty.value}

Generate these questions:
{request_lines}

Relevant course material:
{_format_context(request)}

Generate exactly {request.total_requested} questions in total."""

    system_prompt = SYSTEM_PROMPT
    if format_instructions:
        system_prompt = f"{SYSTEM_PROMPT}\n\n{format_instructions}"

    return [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_prompt),
    ]


def draft_to_question(draft: QuestionDraft, request: GenerationRequest) -> Question:
    """Convert a model draft into a Question tagged with the request's objective."""
    content: dict[str, Any] = {}
    if draft.options:
        content["options"] = draft.options
    if draft.correct_answer is not None:
        content["correct_answer"] = draft.correct_answer
    if draft.items:
        content["items"] = draft.items
    if draft.explanation:
        content["explanation"] = draft.explanation

    return Question(
        objective_id=request.objective_id,
        objective_text=request.objective_text,
        type=draft.type,
        question_text=draft.question_text,
        content=content,
        difficulty=request.difficulty,
    )


def shape_batch_result(
    request: GenerationRequest, drafts: list[QuestionDraft]
) -> GenerationBatchResult:
    """
    Match drafts against the requested cells.

    Surplus drafts of a type and drafts of unrequested types are dropped; a
    shortfall is reported as one type-scoped error.
    """
    questions: list[Question] = []
    errors: list[BatchError] = []

    requested_types = {r.type for r in request.requests}
    dropped = [d for d in drafts if d.type not in requested_types]
    if dropped:
        logger.warning(
            "Dropping %d draft(s) of unrequested types for objective %s",
            len(dropped),
            request.objective_id,
        )

    for type_request in request.requests:
        matching = [d for d in drafts if d.type == type_request.type][: type_request.count]
        questions.extend(draft_to_question(d, request) for d in matching)
        if len(matching) < type_request.count:
            errors.append(
                BatchError(
                    question_type=type_request.type,
                    index=len(matching) + 1,
                    message=(
                        f"Generator returned {len(matching)} of {type_request.count} "
                        f"{type_request.type.value} question(s)"
                    ),
                )
            )

    return GenerationBatchResult(
        questions=questions,
        total_requested=request.total_requested,
        total_generated=len(questions),
        errors=errors,
    )


def _chunk_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Bedrock may stream content blocks instead of plain text
    return "".join(
        block.get("text", "") for block in content if isinstance(block, dict)
    )


class BedrockGenerationGateway:
    """
    Generate one objective's whole batch in a single model call.

    With streaming enabled and an event publisher supplied, the raw model
    text is published as ``text-chunk`` events and parsed once complete.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        settings: Settings | None = None,
        stream: bool | None = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm or ChatBedrock(
            model=self.settings.model_name,
            temperature=self.settings.generation_temperature,
        )
        self.stream = self.settings.stream_generation if stream is None else stream

    def generate_batch(
        self,
        request: GenerationRequest,
        events: EventPublisher | None = None,
    ) -> GenerationBatchResult:
        """
        Generate every requested question for one objective.

        Args:
            request: The objective's (type, count) requests plus context
            events: Optional channel receiving text-chunk events

        Returns:
            GenerationBatchResult with questions and any type-scoped shortfalls
        """
        logger.info(
            "Generating %d question(s) for objective %s with %d context chunk(s)",
            request.total_requested,
            request.objective_id,
            len(request.context),
        )

        if self.stream and events is not None:
            drafts = self._generate_streaming(request, events)
        else:
            # Use structured output to automatically generate and validate the schema
            llm_with_structure = self.llm.with_structured_output(QuestionDraftList)
            drafts = llm_with_structure.invoke(build_messages(request)).questions

        result = shape_batch_result(request, drafts)
        logger.info(
            "Generated %d/%d question(s) for objective %s",
            result.total_generated,
            result.total_requested,
            request.objective_id,
        )
        return result

    def _generate_streaming(
        self, request: GenerationRequest, events: EventPublisher
    ) -> list[QuestionDraft]:
        parser = PydanticOutputParser(pydantic_object=QuestionDraftList)
        messages = build_messages(request, parser.get_format_instructions())
        stream_id = f"{request.objective_id}-batch"

        text = ""
        for chunk in self.llm.stream(messages):
            piece = _chunk_text(chunk.content)
            if not piece:
                continue
            text += piece
            events.publish(TextChunk(question_id=stream_id, chunk=piece, total_length=len(text)))

        return parser.parse(text).questions
