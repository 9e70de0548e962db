"""Rebuilds the knowledge base from portal records and curated help texts."""

import logging
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..domain import KnowledgeCategory, KnowledgeEntry, Policy, Scheme, Tariff
from ..ports.document_store_port import DocumentStorePort
from ..ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str, bool], None]


@dataclass(frozen=True)
class CuratedText:
    title: str
    content: str
    department: str


FAQ_TEXTS: tuple[CuratedText, ...] = (
    CuratedText(
        "How to pay my electricity bill",
        "To pay your electricity bill, navigate to the Bills section from the dashboard. "
        "Select your electricity service account, view the bill details, and click on Pay Now. "
        "You can pay using various methods including UPI, net banking, or credit/debit card.",
        "ELECTRICITY",
    ),
    CuratedText(
        "How to apply for a new water connection",
        "To apply for a new water connection: 1) Go to Dashboard 2) Click on 'New Application' "
        "3) Select WATER department 4) Choose 'New Connection' service 5) Fill in your details "
        "including address and property information 6) Upload required documents (proof of "
        "address, property documents) 7) Submit application and pay the application fee.",
        "WATER",
    ),
    CuratedText(
        "How to book a gas cylinder refill",
        "To book a gas cylinder refill: 1) Go to Dashboard 2) Click on your gas service account "
        "3) Select 'Book Refill' 4) Confirm your address and delivery preferences 5) Submit the "
        "request. You will receive a confirmation with estimated delivery date.",
        "GAS",
    ),
    CuratedText(
        "How to file a grievance",
        "To file a grievance: 1) Navigate to Grievances section 2) Click on 'File New Grievance' "
        "3) Select the department and issue category 4) Provide detailed description of your "
        "issue 5) Attach any supporting documents or photos 6) Submit. You will receive a ticket "
        "number to track your grievance status.",
        "MUNICIPAL",
    ),
    CuratedText(
        "How to check my application status",
        "To check your application status: 1) Go to 'My Applications' from the dashboard 2) You "
        "will see all your submitted applications with their current status 3) Click on any "
        "application to view detailed status, timeline, and any remarks from officials 4) You "
        "will also receive notifications for status updates.",
        "MUNICIPAL",
    ),
    CuratedText(
        "What documents are needed for scheme applications",
        "Required documents vary by scheme but commonly include: 1) Aadhaar card 2) Income "
        "certificate 3) Ration card 4) Bank account details 5) Address proof 6) Caste "
        "certificate (if applicable) 7) Property documents (for housing schemes). Check the "
        "specific scheme details for exact requirements.",
        "MUNICIPAL",
    ),
    CuratedText(
        "How to update my profile information",
        "To update your profile: 1) Go to Profile section from the menu 2) Click on 'Edit "
        "Profile' 3) Update your details like email, address, etc. 4) Save changes. Note: Mobile "
        "number and Aadhaar details cannot be changed through the portal for security reasons.",
        "MUNICIPAL",
    ),
)

SERVICE_TEXTS: tuple[CuratedText, ...] = (
    CuratedText(
        "Bill Payment Services",
        "The Suvidha portal allows citizens to pay bills for various services including "
        "electricity, water, gas, and municipal services. Bills are generated monthly and can be "
        "paid online through multiple payment methods. Citizens receive notifications before due "
        "dates and can view payment history.",
        "MUNICIPAL",
    ),
    CuratedText(
        "Application Services",
        "Citizens can submit various applications through the portal including new connections, "
        "load changes, name changes, connection removals, and scheme applications. Each "
        "application requires specific documents and goes through a defined workflow with status "
        "updates at each stage.",
        "MUNICIPAL",
    ),
    CuratedText(
        "Grievance Redressal System",
        "The grievance redressal system allows citizens to report issues and complaints related "
        "to any department. Each grievance is assigned a unique ticket number, tracked through "
        "resolution, and citizens are notified of updates. Target resolution time varies by "
        "issue category.",
        "MUNICIPAL",
    ),
)


@dataclass
class SourceCounts:
    total: int = 0
    created: int = 0
    failed: int = 0


@dataclass
class IngestionReport:
    """Counts of entries built, stored and skipped per source."""

    removed: int = 0
    sources: dict[str, SourceCounts] = field(default_factory=dict)

    def record(self, source: str, created: bool) -> None:
        counts = self.sources.setdefault(source, SourceCounts())
        counts.total += 1
        if created:
            counts.created += 1
        else:
            counts.failed += 1

    @property
    def total_created(self) -> int:
        return sum(c.created for c in self.sources.values())

    @property
    def total_failed(self) -> int:
        return sum(c.failed for c in self.sources.values())


def _date_text(value: date | None) -> str:
    return value.strftime("%a %b %d %Y") if value else "N/A"


def scheme_content(scheme: Scheme) -> str:
    questions = "; ".join(c.question_text for c in scheme.criteria)
    documents = ", ".join(scheme.required_documents)
    return (
        f"Scheme: {scheme.title}\n"
        f"Department: {scheme.department}\n"
        f"Description: {scheme.description}\n"
        f"Eligibility (Summary): {scheme.eligibility or 'N/A'}\n"
        f"Eligibility (Questions): {questions}\n"
        f"Required Documents: {documents}"
    )


def policy_content(policy: Policy) -> str:
    return (
        f"Policy: {policy.title}\n"
        f"Department: {policy.department}\n"
        f"Description: {policy.description}\n"
        f"Category: {policy.category or 'N/A'}\n"
        f"Effective From: {_date_text(policy.effective_from)}\n"
        f"Document URL: {policy.document_url or 'N/A'}"
    )


def tariff_content(tariff: Tariff) -> str:
    return (
        f"Tariff: {tariff.name}\n"
        f"Department: {tariff.department}\n"
        f"Description: {tariff.description or ''}\n"
        f"Rate: {tariff.rate:g} {tariff.unit}\n"
        f"Category: {tariff.category or 'N/A'}\n"
        f"Effective From: {_date_text(tariff.effective_from)}"
    )


def _entry(
    category: KnowledgeCategory,
    title: str,
    content: str,
    department: str | None,
    metadata: dict[str, Any],
    source_url: str | None = None,
) -> KnowledgeEntry:
    return KnowledgeEntry(
        entry_id=str(uuid.uuid4()),
        category=category,
        title=title,
        content=content,
        department=department,
        metadata=metadata,
        source_url=source_url,
    )


class KnowledgeIngestionService:
    """Clears and regenerates every knowledge entry with fresh embeddings.

    Entries whose embedding fails are skipped and counted; nothing is
    stored without an embedding. Request pacing is the embedding client's
    concern (it carries the rate limiter).
    """

    def __init__(
        self,
        store: DocumentStorePort,
        embedder: EmbeddingPort,
        faqs: tuple[CuratedText, ...] = FAQ_TEXTS,
        services: tuple[CuratedText, ...] = SERVICE_TEXTS,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.faqs = faqs
        self.services = services

    def drafts(self) -> Iterator[tuple[str, KnowledgeEntry]]:
        """Yield (source, entry) pairs for everything to be embedded."""
        for scheme in self.store.list_schemes():
            yield "schemes", _entry(
                KnowledgeCategory.SCHEME,
                scheme.title,
                scheme_content(scheme),
                scheme.department,
                {
                    "schemeId": scheme.scheme_id,
                    "department": scheme.department,
                    "eligibility": scheme.eligibility,
                    "eligibilityCriteria": [
                        {
                            "question": c.question_text,
                            "type": str(getattr(c.question_type, "value", c.question_type)),
                        }
                        for c in scheme.criteria
                    ],
                    "requiredDocuments": list(scheme.required_documents),
                },
                source_url=f"/schemes/{scheme.scheme_id}",
            )

        for policy in self.store.list_policies():
            yield "policies", _entry(
                KnowledgeCategory.POLICY,
                policy.title,
                policy_content(policy),
                policy.department,
                {
                    "policyId": policy.policy_id,
                    "department": policy.department,
                    "effectiveFrom": policy.effective_from.isoformat() if policy.effective_from else None,
                },
            )

        for tariff in self.store.list_tariffs():
            yield "tariffs", _entry(
                KnowledgeCategory.TARIFF,
                tariff.name,
                tariff_content(tariff),
                tariff.department,
                {
                    "tariffId": tariff.tariff_id,
                    "department": tariff.department,
                    "rate": tariff.rate,
                    "unit": tariff.unit,
                },
            )

        for faq in self.faqs:
            yield "faqs", _entry(
                KnowledgeCategory.FAQ, faq.title, faq.content, faq.department, {"type": "faq"}
            )

        for service in self.services:
            yield "services", _entry(
                KnowledgeCategory.SERVICE,
                service.title,
                service.content,
                service.department,
                {"type": "service_info"},
            )

    def rebuild(self, on_progress: ProgressCallback | None = None) -> IngestionReport:
        """Replace the knowledge base.

        Every draft is embedded before the existing entries are removed, so an
        unavailable embedding provider leaves the current knowledge base intact.

        Args:
            on_progress: Optional callback ``(source, title, created)`` invoked
                once per entry.

        Returns:
            IngestionReport with per-source counts.

        Raises:
            EmbeddingUnavailableError: If the embedding provider is not
                configured; nothing is removed.
        """
        embedded: list[KnowledgeEntry] = []
        outcomes: list[tuple[str, bool]] = []
        for source, entry in self.drafts():
            vector = self.embedder.embed_documents([entry.content])[0]
            created = vector is not None
            if created:
                entry.embedding = vector
                embedded.append(entry)
            else:
                logger.warning("Skipped %s entry %r: embedding failed", source, entry.title)
            outcomes.append((source, created))
            if on_progress is not None:
                on_progress(source, entry.title, created)

        report = IngestionReport(removed=self.store.clear_knowledge_base())
        logger.info("Cleared %d knowledge entries", report.removed)
        for entry in embedded:
            self.store.add_knowledge_entry(entry)
        for source, created in outcomes:
            report.record(source, created)

        logger.info(
            "Knowledge base rebuilt: %d created, %d failed",
            report.total_created,
            report.total_failed,
        )
        return report
