"""Health check endpoint."""

import logging

from fastapi import APIRouter

from ..... import __version__
from .....config import settings
from .....core.domain.exceptions import StoreError
from ..deps import Store
from ..models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(store: Store) -> HealthResponse:
    """Liveness plus a count of searchable knowledge entries."""
    try:
        knowledge_entries: int | None = sum(store.count_knowledge_entries().values())
        status = "healthy"
    except StoreError as e:
        logger.warning("Health check could not read the store: %s", e.message)
        knowledge_entries = None
        status = "degraded"

    return HealthResponse(
        status=status,
        version=__version__,
        llm_provider=settings.llm_provider,
        knowledge_entries=knowledge_entries,
    )
