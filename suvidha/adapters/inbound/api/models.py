"""Pydantic models for API requests and responses.

Wire names are camelCase to match the portal client; Python attributes are
snake_case.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessageRequest(APIModel):
    """Request model for one chat turn."""

    conversation_id: str = Field(
        ..., min_length=1, max_length=128, description="Conversation (session) id"
    )
    message: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="The citizen's message",
        json_schema_extra={"example": "Show my unpaid electricity bills"},
    )


class ChatMessageResponse(APIModel):
    """Assistant reply for one chat turn."""

    success: bool = True
    response: str = Field(..., description="Assistant reply text")
    message_id: str = Field(..., description="Id of the persisted assistant message")
    requires_action: bool = Field(False, description="Client must act (navigate) on functionCall")
    function_call: dict[str, Any] | None = Field(
        None, description="{name, arguments, result} of the function the assistant ran"
    )


class NewConversationResponse(APIModel):
    success: bool = True
    conversation_id: str
    is_anonymous: bool


class HistoryMessage(APIModel):
    id: str
    role: str
    content: str
    metadata: dict[str, Any] | None = None
    created_at: str


class ConversationHistoryResponse(APIModel):
    success: bool = True
    conversation_id: str
    is_anonymous: bool
    last_message_at: str
    messages: list[HistoryMessage] = Field(default_factory=list)


class EligibilityCheckRequest(APIModel):
    """Survey answers for a scheme, keyed by criterion id."""

    answers: dict[str, Any] = Field(default_factory=dict)
    save_to_profile: bool = Field(
        False, description="Keep non-empty answers on the profile for pre-filling"
    )


class CriterionResult(APIModel):
    question_id: str
    question: str
    answer: Any = None
    passed: bool
    score: int


class EligibilityCheckResponse(APIModel):
    success: bool = True
    eligible: bool
    eligibility_status: str = Field(
        ..., description="ELIGIBLE, PARTIALLY_ELIGIBLE or NOT_ELIGIBLE"
    )
    score: int
    max_score: int
    percentage: float
    evaluation_results: list[CriterionResult]
    message: str
    saved_to_profile: bool


class SavedAnswersResponse(APIModel):
    success: bool = True
    scheme_id: str
    answers: dict[str, Any] = Field(
        default_factory=dict, description="Criterion id -> pre-filled answer"
    )


class KnowledgeResult(APIModel):
    title: str
    content: str
    category: str
    department: str | None = None
    relevance_score: float = Field(..., ge=-1, le=1)


class KnowledgeSearchResponse(APIModel):
    success: bool = True
    results: list[KnowledgeResult]
    total_results: int


class HealthResponse(APIModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    llm_provider: str = Field(..., description="Configured completion provider")
    knowledge_entries: int | None = Field(None, description="Active knowledge entries")


class ErrorDetail(BaseModel):
    """Structured error detail information."""

    type: str = Field(..., description="Exception type name")
    code: str = Field(..., description="Error code (e.g., SUV_STO_002)")
    message: str = Field(..., description="Human-readable error message")


class ErrorResponse(BaseModel):
    """Response model for structured errors.

    Example:
        {
            "error": {"type": "NotFoundError", "code": "SUV_STO_002", "message": "..."},
            "message": "Scheme not found",
            "location": {"class": "SchemeEligibilityService", "method": "_load_scheme", ...},
            "context": {"scheme_id": "..."}
        }
    """

    error: ErrorDetail
    message: str
    location: dict[str, Any] | None = None
    context: dict[str, Any] | None = None
    cause: dict[str, Any] | None = None
    stack_trace: list[str] | None = None
