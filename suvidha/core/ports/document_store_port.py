"""Document Store Port Interface.

The relational data of the citizen-services portal, narrowed to what the
assistant core reads and writes. Records are keyed by opaque string ids.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import (
    Application,
    Bill,
    ChatMessage,
    Citizen,
    CitizenProfile,
    Conversation,
    Grievance,
    KnowledgeEntry,
    MessageRole,
    Payment,
    Policy,
    SavedAnswer,
    Scheme,
    SchemeApplication,
    Tariff,
)


class DocumentStorePort(ABC):
    """Abstract interface for the portal's document store."""

    # Knowledge base

    @abstractmethod
    def list_knowledge_entries(
        self, category: str | None = None, active_only: bool = True
    ) -> list[KnowledgeEntry]:
        """List knowledge entries, optionally pre-filtered by category."""
        ...

    @abstractmethod
    def add_knowledge_entry(self, entry: KnowledgeEntry) -> str: ...

    @abstractmethod
    def clear_knowledge_base(self) -> int: ...

    # Schemes, policies, tariffs

    @abstractmethod
    def get_scheme(self, scheme_id: str) -> Scheme | None:
        """Fetch a scheme with its criteria ordered by ``order``."""
        ...

    @abstractmethod
    def find_schemes_by_title(self, fragment: str, limit: int = 3) -> list[Scheme]:
        """Case-insensitive substring match on scheme titles."""
        ...

    @abstractmethod
    def list_schemes(self) -> list[Scheme]: ...

    @abstractmethod
    def list_policies(self) -> list[Policy]: ...

    @abstractmethod
    def list_tariffs(self) -> list[Tariff]: ...

    # Conversations (append-only)

    @abstractmethod
    def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Fetch a conversation with its full message history, oldest first."""
        ...

    @abstractmethod
    def create_conversation(
        self, conversation_id: str, citizen_id: str | None = None
    ) -> Conversation: ...

    @abstractmethod
    def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage: ...

    @abstractmethod
    def touch_conversation(self, conversation_id: str) -> None:
        """Update the conversation's last-activity timestamp."""
        ...

    # Citizens

    @abstractmethod
    def get_citizen(self, citizen_id: str) -> Citizen | None: ...

    @abstractmethod
    def get_profile(self, citizen_id: str) -> CitizenProfile | None: ...

    @abstractmethod
    def save_answers(self, citizen_id: str, answers: dict[str, SavedAnswer]) -> CitizenProfile:
        """Upsert saved answers into the profile (last write wins per key).

        Saving records the citizen's consent to reuse answers across schemes.
        """
        ...

    # Bills and payments

    @abstractmethod
    def list_bills(
        self,
        citizen_id: str,
        department: str | None = None,
        is_paid: bool | None = None,
        limit: int = 10,
    ) -> list[Bill]: ...

    @abstractmethod
    def get_unpaid_bill(self, citizen_id: str, bill_id: str) -> Bill | None:
        """An unpaid bill owned by the citizen, or None."""
        ...

    @abstractmethod
    def pay_bills(self, citizen_id: str, bill_ids: list[str]) -> list[Payment]:
        """Pay all bills atomically.

        Raises:
            PartialBatchInvalidError: If any bill is unknown, already paid or
                not owned by the citizen. No bill changes state.
        """
        ...

    # Applications and grievances

    @abstractmethod
    def list_applications(
        self,
        citizen_id: str,
        department: str | None = None,
        status: str | None = None,
        limit: int = 10,
    ) -> list[Application]: ...

    @abstractmethod
    def list_scheme_applications(
        self, citizen_id: str, status: str | None = None, limit: int = 10
    ) -> list[SchemeApplication]: ...

    @abstractmethod
    def list_grievances(
        self, citizen_id: str, status: str | None = None, limit: int = 10
    ) -> list[Grievance]: ...

    @abstractmethod
    def create_grievance(self, citizen_id: str, department: str, description: str) -> Grievance: ...
