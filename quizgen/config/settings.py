"""Application settings and configuration."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

from quizgen.models.quiz import QuestionDifficulty

# Load .env file if present
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # AWS CONFIG (boto3 falls back to its own credential chain when unset)
    aws_api_key_id: str | None = Field(
        default=None,
        description="AWS API key ID",
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    aws_api_key_secret: str | None = Field(
        default=None,
        description="AWS API key",
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_default_region: str | None = Field(
        default=None,
        description="AWS API region",
        validation_alias="AWS_DEFAULT_REGION",
    )

    # Model Configuration
    model_name: str = Field(
        default="anthropic.claude-3-7-sonnet-20250219-v1:0",
        description="Model to use for question generation (AWS Bedrock model ID)",
        validation_alias="MODEL_NAME",
    )

    embedding_model_name: str = Field(
        default="amazon.titan-embed-text-v2:0",
        description="Bedrock embedding model used by the CLI's in-memory index",
        validation_alias="EMBEDDING_MODEL_NAME",
    )

    # Generation Settings
    generation_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for question generation",
        validation_alias="GENERATION_TEMPERATURE",
    )

    generation_timeout_seconds: float = Field(
        default=120.0,
        gt=0.0,
        le=900.0,
        description="Upper bound for a single batch generation call",
        validation_alias="GENERATION_TIMEOUT",
    )

    stream_generation: bool = Field(
        default=False,
        description="Stream generator text as text-chunk events",
        validation_alias="STREAM_GENERATION",
    )

    default_difficulty: QuestionDifficulty = Field(
        default=QuestionDifficulty.MODERATE,
        description="Difficulty used when the quiz does not set one",
        validation_alias="DEFAULT_DIFFICULTY",
    )

    # Retrieval Settings
    retrieval_top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of chunks retrieved per objective",
        validation_alias="RETRIEVAL_TOP_K",
    )

    retrieval_min_score: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum relevance score for a retrieved chunk",
        validation_alias="RETRIEVAL_MIN_SCORE",
    )

    retrieval_fetch_multiplier: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Over-fetch factor before material filtering",
        validation_alias="RETRIEVAL_FETCH_MULTIPLIER",
    )

    # Planning Settings
    default_questions_per_objective: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Questions per learning objective when no total is given",
        validation_alias="QUESTIONS_PER_OBJECTIVE",
    )

    # Streaming / Workflow Settings
    heartbeat_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Idle time before the event stream emits a heartbeat",
        validation_alias="HEARTBEAT_INTERVAL",
    )

    max_workflow_steps: int = Field(
        default=1000,
        ge=10,
        description="Minimum LangGraph recursion limit; larger quizzes get one step per objective",
        validation_alias="MAX_WORKFLOW_STEPS",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI",
        validation_alias="LOG_LEVEL",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "protected_namespaces": (),
        "populate_by_name": True,
    }


# This is loaded the first time and then cached for further use by the pipeline
@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with loaded configuration
    """
    return Settings()
