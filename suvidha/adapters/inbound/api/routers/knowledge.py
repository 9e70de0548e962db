"""Knowledge-base search endpoint."""

from typing import Annotated

from fastapi import APIRouter, Query

from .....core.domain import KnowledgeCategory
from ..deps import Retriever
from ..models import ErrorResponse, KnowledgeResult, KnowledgeSearchResponse

router = APIRouter(prefix="/api/knowledge", tags=["knowledge"])


@router.get(
    "/search",
    response_model=KnowledgeSearchResponse,
    responses={503: {"model": ErrorResponse, "description": "Embedding provider unavailable"}},
)
def search_knowledge(
    retriever: Retriever,
    query: Annotated[str, Query(min_length=1, max_length=1000, description="Search text")],
    category: Annotated[KnowledgeCategory | None, Query()] = None,
    top_k: Annotated[int, Query(alias="topK", ge=1, le=20)] = 5,
) -> KnowledgeSearchResponse:
    results = retriever.search(query, category=category, top_k=top_k)
    return KnowledgeSearchResponse(
        results=[KnowledgeResult.model_validate(r.to_dict()) for r in results],
        total_results=len(results),
    )
