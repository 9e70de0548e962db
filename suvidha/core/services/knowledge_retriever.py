"""Knowledge retriever: embeds a query and ranks knowledge-base entries."""

import logging

from ..domain import KnowledgeCategory, RetrievedKnowledge
from ..ports.document_store_port import DocumentStorePort
from ..ports.embedding_port import EmbeddingPort
from .similarity import DEFAULT_TOP_K, SimilarityEngine

logger = logging.getLogger(__name__)


class KnowledgeRetriever:
    """Finds knowledge-base entries relevant to a free-text query.

    The scan is brute force over every active entry (optionally restricted
    to one category). An empty or unembedded knowledge base is a valid
    "no grounding available" state and yields an empty list.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        embedder: EmbeddingPort,
        similarity: SimilarityEngine | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            store: Document store holding the knowledge entries.
            embedder: Embedding client used for the query text.
            similarity: Ranking engine; a default one is created if omitted.
        """
        self.store = store
        self.embedder = embedder
        self.similarity = similarity or SimilarityEngine()

    def search(
        self,
        query: str,
        category: KnowledgeCategory | str | None = None,
        top_k: int = DEFAULT_TOP_K,
    ) -> list[RetrievedKnowledge]:
        """Search the knowledge base.

        Args:
            query: User question or search text.
            category: Optional category filter (scheme, policy, tariff, faq, service).
            top_k: Maximum number of results.

        Returns:
            Results ordered by descending relevance.

        Raises:
            InvalidInputError: If the query is empty.
            EmbeddingUnavailableError: If the embedding provider is not configured.
            EmbeddingRequestFailedError: If the query could not be embedded.
        """
        category_value = KnowledgeCategory(category).value if category else None

        entries = self.store.list_knowledge_entries(category=category_value, active_only=True)
        if not any(entry.embedding for entry in entries):
            logger.info("No embedded knowledge entries available (category=%s)", category_value)
            return []

        query_embedding = self.embedder.embed(query)
        ranked = self.similarity.rank(query_embedding, entries, top_k=top_k)
        logger.debug(
            "Ranked %d of %d entries for query (category=%s)",
            len(ranked),
            len(entries),
            category_value,
        )

        return [
            RetrievedKnowledge(
                title=entry.title,
                content=entry.content,
                category=KnowledgeCategory(entry.category).value,
                department=entry.department,
                relevance_score=score,
            )
            for entry, score in ranked
        ]


def format_grounding(results: list[RetrievedKnowledge]) -> str:
    """Render retrieved entries as the grounding block of the system prompt."""
    if not results:
        return ""

    parts = ["Relevant Information from Knowledge Base:"]
    for idx, result in enumerate(results, start=1):
        parts.append(
            f"\n{idx}. {result.title}\n{result.content}\n"
            f"(Relevance: {result.relevance_score * 100:.1f}%)"
        )
    return "\n".join(parts)


def summarize(results: list[RetrievedKnowledge], limit: int = 3) -> str:
    """Numbered title/content summary used when the model is unavailable."""
    return "\n\n".join(
        f"{idx}. {result.title}\n{result.content}"
        for idx, result in enumerate(results[:limit], start=1)
    )
