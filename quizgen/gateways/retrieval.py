"""Retrieval gateway backed by a LangChain vector store."""

import logging
from collections.abc import Sequence

from langchain_core.vectorstores import VectorStore

from quizgen.models.gateway import ContentChunk, RetrievalResult
from quizgen.models.quiz import QuestionType

logger = logging.getLogger(__name__)

# Extra terms steer similarity search toward content that suits each format
QUESTION_TYPE_KEYWORDS: dict[QuestionType, str] = {
    QuestionType.MULTIPLE_CHOICE: "concepts, definitions, examples, comparisons, applications",
    QuestionType.TRUE_FALSE: "facts, statements, principles, rules, claims",
    QuestionType.FLASHCARD: "key terms, definitions, important facts, concepts",
    QuestionType.SUMMARY: "main ideas, key points, overview, important concepts",
    QuestionType.DISCUSSION: "analysis, interpretation, critical thinking, perspectives",
    QuestionType.MATCHING: "relationships, connections, pairs, associations",
    QuestionType.ORDERING: "sequences, processes, steps, chronology",
    QuestionType.CLOZE: "specific terms, key words, important details",
}


def build_search_query(objective_text: str, question_type: QuestionType) -> str:
    """Combine the objective with keywords for the requested question type."""
    keywords = QUESTION_TYPE_KEYWORDS.get(question_type, "concepts, examples, applications")
    return f"{objective_text} {keywords}"


class VectorStoreRetrievalGateway:
    """
    Retrieve objective-relevant chunks from any LangChain ``VectorStore``.

    Documents must carry the id of their source material in metadata under
    ``material_key``; only chunks of the requested materials are returned.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        fetch_multiplier: int = 4,
        material_key: str = "material_id",
    ):
        self.vector_store = vector_store
        self.fetch_multiplier = fetch_multiplier
        self.material_key = material_key

    def retrieve(
        self,
        query_text: str,
        question_type: QuestionType,
        *,
        top_k: int,
        material_ids: Sequence[str],
        min_score: float,
    ) -> RetrievalResult:
        """
        Ranked chunks for an objective, scoped to the given materials.

        Args:
            query_text: Learning objective text
            question_type: Primary question type requested for the objective
            top_k: Maximum number of chunks to return
            material_ids: Processed materials the search is restricted to
            min_score: Relevance floor between 0 and 1

        Returns:
            RetrievalResult with chunks sorted by descending score
        """
        if not material_ids:
            logger.info("No processed materials to search; returning empty context")
            return RetrievalResult()

        query = build_search_query(query_text, question_type)
        candidates = self.vector_store.similarity_search_with_relevance_scores(
            query, k=top_k * self.fetch_multiplier
        )

        allowed = set(material_ids)
        chunks = [
            ContentChunk(text=document.page_content, score=score, metadata=dict(document.metadata))
            for document, score in candidates
            if document.metadata.get(self.material_key) in allowed and score >= min_score
        ]
        chunks.sort(key=lambda chunk: chunk.score, reverse=True)

        logger.debug(
            "Retrieved %d/%d chunk(s) for %s query (min score %.2f)",
            len(chunks[:top_k]),
            len(candidates),
            question_type.value,
            min_score,
        )
        return RetrievalResult(chunks=chunks[:top_k])
