"""Domain models for the Suvidha assistant core.

- knowledge: KnowledgeEntry and RetrievedKnowledge for retrieval grounding
- eligibility: criteria, answers and EligibilityResult
- conversation: the append-only chat log and function-call records
- records: citizen-services rows the assistant functions read and write

All models are re-exported here:

    from suvidha.core.domain import EligibilityCriterion, KnowledgeEntry
"""

from .conversation import (
    ChatMessage,
    ChatReply,
    Completion,
    Conversation,
    FunctionCallRequest,
    FunctionOutcome,
    MessageRole,
    context_window,
)
from .eligibility import (
    AnswerSet,
    CriterionOutcome,
    EligibilityCriterion,
    EligibilityResult,
    EligibilityTier,
    QuestionType,
    SavedAnswer,
)
from .knowledge import KnowledgeCategory, KnowledgeEntry, RetrievedKnowledge
from .records import (
    Application,
    ApplicationStatus,
    Bill,
    Citizen,
    CitizenProfile,
    Department,
    Grievance,
    GrievanceStatus,
    Payment,
    PaymentStatus,
    Policy,
    Scheme,
    SchemeApplication,
    SchemeApplicationStatus,
    ServiceAccount,
    Tariff,
)

__all__ = [
    # Knowledge
    "KnowledgeCategory",
    "KnowledgeEntry",
    "RetrievedKnowledge",
    # Eligibility
    "AnswerSet",
    "QuestionType",
    "EligibilityTier",
    "EligibilityCriterion",
    "CriterionOutcome",
    "EligibilityResult",
    "SavedAnswer",
    # Conversation
    "MessageRole",
    "ChatMessage",
    "Conversation",
    "context_window",
    "FunctionCallRequest",
    "FunctionOutcome",
    "Completion",
    "ChatReply",
    # Records
    "Department",
    "ApplicationStatus",
    "SchemeApplicationStatus",
    "GrievanceStatus",
    "PaymentStatus",
    "Citizen",
    "CitizenProfile",
    "ServiceAccount",
    "Bill",
    "Payment",
    "Application",
    "SchemeApplication",
    "Grievance",
    "Scheme",
    "Policy",
    "Tariff",
]
