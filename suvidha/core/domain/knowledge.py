"""Knowledge-base models for retrieval grounding."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class KnowledgeCategory(str, Enum):
    """Source kind of a knowledge-base entry."""

    SCHEME = "scheme"
    POLICY = "policy"
    TARIFF = "tariff"
    FAQ = "faq"
    SERVICE = "service"


@dataclass
class KnowledgeEntry:
    """A piece of indexed text with its precomputed embedding.

    Attributes:
        entry_id: Store identifier.
        category: Which source the entry was built from.
        title: Short title shown in grounding and search results.
        content: Free text that was embedded.
        department: Optional department scope tag (ELECTRICITY, WATER, ...).
        embedding: Vector, or the raw JSON text as stored; None if missing.
        metadata: Opaque key-value bag (scheme id, tariff rate, ...).
        is_active: Inactive entries are excluded from search.
        source_url: Client route for the underlying record, if any.
    """

    entry_id: str
    category: KnowledgeCategory
    title: str
    content: str
    department: str | None = None
    embedding: list[float] | str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    source_url: str | None = None


@dataclass
class RetrievedKnowledge:
    """A knowledge entry matched to a query, with its cosine relevance."""

    title: str
    content: str
    category: str
    department: str | None
    relevance_score: float

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the chat client and the function-call results."""
        return {
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "department": self.department,
            "relevanceScore": self.relevance_score,
        }
