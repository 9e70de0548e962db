"""FastAPI dependencies for the Suvidha API."""

from typing import Annotated

from fastapi import Depends, Header

from ....adapters.outbound.store.sqlite_store import SQLiteDocumentStore
from ....composition import container
from ....core.services.conversation import ConversationOrchestrator
from ....core.services.knowledge_retriever import KnowledgeRetriever
from ....core.services.scheme_eligibility import SchemeEligibilityService


def get_orchestrator() -> ConversationOrchestrator:
    return container.get_orchestrator()


def get_eligibility_service() -> SchemeEligibilityService:
    return container.get_eligibility_service()


def get_retriever() -> KnowledgeRetriever:
    return container.get_retriever()


def get_store() -> SQLiteDocumentStore:
    return container.get_store()


def get_citizen_id(
    x_citizen_id: Annotated[str | None, Header(alias="X-Citizen-Id")] = None,
) -> str | None:
    """Citizen identity forwarded by the authentication layer, if any."""
    if x_citizen_id is None:
        return None
    return x_citizen_id.strip() or None


CitizenId = Annotated[str | None, Depends(get_citizen_id)]
Orchestrator = Annotated[ConversationOrchestrator, Depends(get_orchestrator)]
EligibilityService = Annotated[SchemeEligibilityService, Depends(get_eligibility_service)]
Retriever = Annotated[KnowledgeRetriever, Depends(get_retriever)]
Store = Annotated[SQLiteDocumentStore, Depends(get_store)]
