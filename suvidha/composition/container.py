"""Composition root wiring adapters to the core services."""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.embedding.bedrock_embedding import BedrockEmbeddingClient
from ..adapters.outbound.llm.factory import create_llm_provider
from ..adapters.outbound.store.sqlite_store import SQLiteDocumentStore
from ..common.rate_limiter import RateLimiter
from ..config import settings
from ..core.ports.llm_port import LLMPort
from ..core.services.assistant_functions import FunctionRegistry
from ..core.services.conversation import ConversationOrchestrator
from ..core.services.eligibility_evaluator import EligibilityEvaluator
from ..core.services.knowledge_ingestion import KnowledgeIngestionService
from ..core.services.knowledge_retriever import KnowledgeRetriever
from ..core.services.scheme_eligibility import SchemeEligibilityService

logger = logging.getLogger(__name__)


@lru_cache
def get_store() -> SQLiteDocumentStore:
    logger.info("Initializing SQLiteDocumentStore at %s", settings.database_path)
    settings.ensure_directories()
    return SQLiteDocumentStore(settings.database_path)


@lru_cache
def get_embedder() -> BedrockEmbeddingClient:
    logger.info("Initializing BedrockEmbeddingClient (%s)...", settings.embedding_model)
    return BedrockEmbeddingClient(
        bearer_token=settings.aws_bearer_token_bedrock,
        endpoint=settings.aws_bedrock_endpoint,
        model=settings.embedding_model,
        dimension=settings.embedding_dimension,
        max_chars=settings.embedding_max_chars,
        max_retries=settings.embedding_max_retries,
        backoff_seconds=settings.embedding_backoff_seconds,
        timeout=settings.request_timeout_seconds,
        rate_limiter=RateLimiter(settings.embedding_requests_per_minute),
    )


@lru_cache
def get_llm() -> LLMPort:
    logger.info("Initializing LLM provider %s...", settings.llm_provider)
    return create_llm_provider(settings, rate_limiter=RateLimiter(settings.llm_requests_per_minute))


@lru_cache
def get_retriever() -> KnowledgeRetriever:
    return KnowledgeRetriever(get_store(), get_embedder())


@lru_cache
def get_eligibility_service() -> SchemeEligibilityService:
    evaluator = EligibilityEvaluator(strict=settings.eligibility_strict_question_types)
    return SchemeEligibilityService(get_store(), evaluator)


@lru_cache
def get_function_registry() -> FunctionRegistry:
    return FunctionRegistry(
        get_store(),
        get_retriever(),
        get_eligibility_service(),
        top_k=settings.top_k_results,
    )


@lru_cache
def get_orchestrator() -> ConversationOrchestrator:
    logger.info("Initializing ConversationOrchestrator...")
    return ConversationOrchestrator(
        store=get_store(),
        llm=get_llm(),
        retriever=get_retriever(),
        functions=get_function_registry(),
        window_size=settings.chat_context_window,
        use_knowledge_base=settings.use_knowledge_base,
        top_k=settings.top_k_results,
    )


@lru_cache
def get_ingestion_service() -> KnowledgeIngestionService:
    return KnowledgeIngestionService(get_store(), get_embedder())
