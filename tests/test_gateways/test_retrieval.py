"""Tests for the vector store retrieval gateway."""

from langchain_core.documents import Document

from quizgen.gateways.retrieval import VectorStoreRetrievalGateway, build_search_query
from quizgen.models.quiz import QuestionType


class StubVectorStore:
    """Returns fixed (document, score) pairs and records the query."""

    def __init__(self, results: list[tuple[Document, float]]):
        self.results = results
        self.queries: list[tuple[str, int]] = []

    def similarity_search_with_relevance_scores(self, query: str, k: int = 4, **kwargs):
        self.queries.append((query, k))
        return self.results[:k]


def _doc(text: str, material_id: str) -> Document:
    return Document(page_content=text, metadata={"material_id": material_id})


class TestBuildSearchQuery:
    """Test query construction."""

    def test_adds_type_keywords(self):
        """Test that ordering questions search for sequences."""
        query = build_search_query("Describe mitosis", QuestionType.ORDERING)

        assert query.startswith("Describe mitosis ")
        assert "sequences" in query


class TestVectorStoreRetrievalGateway:
    """Test filtering and ranking."""

    def test_filters_by_material_and_score(self):
        """Test that only chunks of allowed materials above the floor come back."""
        store = StubVectorStore(
            [
                (_doc("low score", "m-1"), 0.1),
                (_doc("other material", "m-9"), 0.95),
                (_doc("good", "m-1"), 0.7),
                (_doc("best", "m-2"), 0.9),
            ]
        )
        gateway = VectorStoreRetrievalGateway(store)

        result = gateway.retrieve(
            "Explain ATP",
            QuestionType.FLASHCARD,
            top_k=5,
            material_ids=["m-1", "m-2"],
            min_score=0.3,
        )

        assert [c.text for c in result.chunks] == ["best", "good"]
        assert result.chunks[0].metadata["material_id"] == "m-2"

    def test_over_fetches_then_trims(self):
        """Test that the store is asked for more than top_k."""
        store = StubVectorStore([(_doc(f"chunk {i}", "m-1"), 0.9 - i / 100) for i in range(10)])
        gateway = VectorStoreRetrievalGateway(store, fetch_multiplier=3)

        result = gateway.retrieve(
            "Explain ATP",
            QuestionType.CLOZE,
            top_k=2,
            material_ids=["m-1"],
            min_score=0.0,
        )

        assert store.queries[0][1] == 6
        assert [c.text for c in result.chunks] == ["chunk 0", "chunk 1"]

    def test_no_materials_skips_search(self):
        """Test that a quiz without processed materials gets empty context."""
        store = StubVectorStore([(_doc("anything", "m-1"), 0.9)])
        gateway = VectorStoreRetrievalGateway(store)

        result = gateway.retrieve(
            "Explain ATP",
            QuestionType.SUMMARY,
            top_k=3,
            material_ids=[],
            min_score=0.3,
        )

        assert result.chunks == []
        assert store.queries == []
