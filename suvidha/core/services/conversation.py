"""Conversation orchestrator: one chat turn from user text to persisted reply."""

import logging
import uuid

from ..domain import (
    ChatMessage,
    ChatReply,
    Conversation,
    FunctionOutcome,
    MessageRole,
    RetrievedKnowledge,
    context_window,
)
from ..domain.exceptions import (
    ForbiddenError,
    InvalidInputError,
    LLMError,
    NotFoundError,
    SuvidhaError,
)
from ..ports.document_store_port import DocumentStorePort
from ..ports.llm_port import LLMPort
from .assistant_functions import FunctionRegistry
from .knowledge_retriever import KnowledgeRetriever, format_grounding, summarize
from .prompts import (
    EMPTY_COMPLETION_REPLY,
    FUNCTION_RESULT_FALLBACK,
    KNOWLEDGE_FALLBACK_PREFIX,
    NAVIGATION_REPLY,
    UNAVAILABLE_REPLY,
    build_system_prompt,
)

logger = logging.getLogger(__name__)


class ConversationOrchestrator:
    """Runs chat turns against an append-only conversation log.

    A turn persists the user message, grounds the model with the most
    relevant knowledge entries, lets the model answer directly or call one
    assistant function, and persists the reply. Provider failures never
    reach the caller: the reply degrades to a knowledge-base summary or a
    fixed "try again" message.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        llm: LLMPort,
        retriever: KnowledgeRetriever,
        functions: FunctionRegistry,
        window_size: int = 20,
        use_knowledge_base: bool = True,
        top_k: int = 5,
    ) -> None:
        self.store = store
        self.llm = llm
        self.retriever = retriever
        self.functions = functions
        self.window_size = window_size
        self.use_knowledge_base = use_knowledge_base
        self.top_k = top_k

    def start_conversation(self, citizen_id: str | None = None) -> Conversation:
        """Create an empty conversation with a fresh id."""
        conversation = self.store.create_conversation(str(uuid.uuid4()), citizen_id)
        logger.info(
            "Started conversation %s (anonymous=%s)",
            conversation.conversation_id,
            conversation.is_anonymous,
        )
        return conversation

    def history(self, conversation_id: str, citizen_id: str | None = None) -> Conversation:
        """Full conversation, messages oldest first.

        A conversation started by a logged-in citizen is only readable by
        that citizen.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If the conversation belongs to another citizen.
        """
        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(
                "Conversation not found", context={"conversation_id": conversation_id}
            )
        if conversation.citizen_id and conversation.citizen_id != citizen_id:
            logger.warning(
                "Denied history of conversation %s",
                conversation_id,
                extra={"conversation_id": conversation_id, "citizen_id": citizen_id},
            )
            raise ForbiddenError(
                "Access denied to this conversation",
                context={"conversation_id": conversation_id},
            )
        return conversation

    def handle_message(
        self, conversation_id: str, text: str, citizen_id: str | None = None
    ) -> ChatReply:
        """Process one user message and return the assistant's reply.

        Raises:
            InvalidInputError: If the message is empty or whitespace.
        """
        if not text or not text.strip():
            raise InvalidInputError("Message cannot be empty")
        if not conversation_id or not conversation_id.strip():
            raise InvalidInputError("Conversation id is required")
        log_context = {"conversation_id": conversation_id, "citizen_id": citizen_id}

        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            conversation = self.store.create_conversation(conversation_id, citizen_id)
            logger.info("Created conversation %s", conversation_id, extra=log_context)

        user_message = self.store.append_message(conversation_id, MessageRole.USER, text)
        window = context_window([*conversation.messages, user_message], self.window_size)

        grounding = self._ground(text) if self.use_knowledge_base else None
        system_prompt = build_system_prompt(format_grounding(grounding or []))

        content, outcome = self._generate(system_prompt, window, citizen_id, text, grounding)
        logger.info(
            "Answered turn (requires_action=%s)",
            bool(outcome and outcome.requires_action),
            extra={**log_context, "function": outcome.name if outcome else None},
        )

        metadata = {"functionCall": outcome.to_record()} if outcome else None
        assistant_message = self.store.append_message(
            conversation_id, MessageRole.ASSISTANT, content, metadata
        )
        self.store.touch_conversation(conversation_id)

        return ChatReply(
            message_id=assistant_message.message_id,
            content=content,
            requires_action=bool(outcome and outcome.requires_action),
            function_call=outcome.to_record() if outcome else None,
        )

    def _ground(self, query: str) -> list[RetrievedKnowledge]:
        """Retrieve grounding; failures leave the turn ungrounded."""
        try:
            return self.retriever.search(query, top_k=self.top_k)
        except SuvidhaError as e:
            logger.warning("Knowledge retrieval failed [%s]: %s", e.error_code, e.message)
            return []

    def _generate(
        self,
        system_prompt: str,
        window: list[ChatMessage],
        citizen_id: str | None,
        query: str,
        grounding: list[RetrievedKnowledge] | None,
    ) -> tuple[str, FunctionOutcome | None]:
        declarations = self.functions.declarations() if self.llm.supports_function_calling else None

        try:
            completion = self.llm.complete(system_prompt, window, declarations)
        except LLMError as e:
            logger.error("Provider %s failed [%s]: %s", self.llm.name, e.error_code, e.message)
            return self._fallback(query, grounding), None

        call = completion.function_call
        if call is None or declarations is None:
            return completion.text or EMPTY_COMPLETION_REPLY, None

        outcome = self.functions.dispatch(call.name, call.arguments, citizen_id)
        if outcome.requires_action:
            return NAVIGATION_REPLY.format(page=outcome.result.get("page")), outcome

        try:
            final = self.llm.continue_with_function_result(
                system_prompt, window, declarations, call, outcome.result
            )
        except LLMError as e:
            # The function already ran; keep its record even without a final answer.
            logger.error(
                "Provider %s failed after %s [%s]: %s",
                self.llm.name,
                call.name,
                e.error_code,
                e.message,
            )
            return FUNCTION_RESULT_FALLBACK, outcome

        return final.text or FUNCTION_RESULT_FALLBACK, outcome

    def _fallback(self, query: str, grounding: list[RetrievedKnowledge] | None) -> str:
        results = grounding if grounding is not None else self._ground(query)
        if results:
            return KNOWLEDGE_FALLBACK_PREFIX + summarize(results, limit=3)
        return UNAVAILABLE_REPLY
