"""Shared test fixtures and configuration for pytest."""

import pytest

from quizgen.config.settings import Settings
from quizgen.models.quiz import (
    LearningObjective,
    Material,
    ProcessingStatus,
    QuestionDifficulty,
    Quiz,
)
from quizgen.pipeline import QuestionGenerationPipeline
from quizgen.planning.lifecycle import PlanManager
from quizgen.storage.memory import InMemoryPlanRepository, InMemoryQuizRepository

from tests.fakes import FakeGenerationGateway, FakeRetrievalGateway


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts for tests."""
    return Settings(
        generation_timeout_seconds=5.0,
        heartbeat_interval_seconds=5.0,
        default_questions_per_objective=3,
        retrieval_top_k=5,
        retrieval_min_score=0.3,
    )


@pytest.fixture
def sample_quiz() -> Quiz:
    """Create a sample Quiz with three objectives and one processed material."""
    return Quiz(
        id="quiz-1",
        name="Cell Biology Week 3",
        objectives=[
            LearningObjective(id="lo-1", text="Explain the role of mitochondria", order=0),
            LearningObjective(id="lo-2", text="Compare mitosis and meiosis", order=1),
            LearningObjective(id="lo-3", text="Describe the cell membrane", order=2),
        ],
        materials=[
            Material(
                id="m-1",
                name="lecture-3.pdf",
                type="pdf",
                processing_status=ProcessingStatus.COMPLETED,
            ),
            Material(id="m-2", name="notes.docx", type="docx"),
        ],
        difficulty=QuestionDifficulty.MODERATE,
    )


@pytest.fixture
def quiz_repository(sample_quiz: Quiz) -> InMemoryQuizRepository:
    return InMemoryQuizRepository([sample_quiz])


@pytest.fixture
def plan_manager(settings: Settings) -> PlanManager:
    return PlanManager(repository=InMemoryPlanRepository(), settings=settings)


@pytest.fixture
def approved_plan(plan_manager: PlanManager, sample_quiz: Quiz):
    """An approved 'assess' plan of 10 questions for the sample quiz."""
    plan = plan_manager.create_plan(sample_quiz, approach_id="assess", total_questions=10)
    return plan_manager.approve(plan.id)


@pytest.fixture
def retrieval() -> FakeRetrievalGateway:
    return FakeRetrievalGateway()


@pytest.fixture
def generation() -> FakeGenerationGateway:
    return FakeGenerationGateway()


@pytest.fixture
def pipeline(
    quiz_repository: InMemoryQuizRepository,
    plan_manager: PlanManager,
    retrieval: FakeRetrievalGateway,
    generation: FakeGenerationGateway,
    settings: Settings,
) -> QuestionGenerationPipeline:
    """Pipeline wired to in-memory storage and fake gateways."""
    return QuestionGenerationPipeline(
        quizzes=quiz_repository,
        plans=plan_manager,
        retrieval=retrieval,
        generation=generation,
        settings=settings,
    )
