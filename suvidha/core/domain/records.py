"""Citizen-services records read and written by the assistant functions.

These mirror the rows of the portal's relational schema that the assistant
core needs; the full schema is owned by the portal.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .eligibility import EligibilityCriterion, SavedAnswer


class Department(str, Enum):
    ELECTRICITY = "ELECTRICITY"
    WATER = "WATER"
    GAS = "GAS"
    SANITATION = "SANITATION"
    MUNICIPAL = "MUNICIPAL"


class ApplicationStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    UNDER_PROCESS = "UNDER_PROCESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class SchemeApplicationStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    DOCUMENTS_REQUIRED = "DOCUMENTS_REQUIRED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class GrievanceStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class PaymentStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass
class CitizenProfile:
    """Reusable profile data; ``saved_answers`` is keyed by normalized question text."""

    citizen_id: str
    consent_to_save_answers: bool = False
    saved_answers: dict[str, SavedAnswer] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class ServiceAccount:
    account_id: str
    citizen_id: str
    department: str
    consumer_id: str
    address: str = ""


@dataclass
class Bill:
    bill_id: str
    account_id: str
    amount: float
    due_date: date
    is_paid: bool = False
    department: str | None = None
    consumer_id: str | None = None


@dataclass
class Payment:
    payment_id: str
    citizen_id: str
    bill_id: str
    amount: float
    status: PaymentStatus
    receipt_no: str
    created_at: datetime


@dataclass
class Citizen:
    citizen_id: str
    full_name: str
    mobile_number: str
    email: str | None = None
    profile: CitizenProfile | None = None
    service_accounts: list[ServiceAccount] = field(default_factory=list)


@dataclass
class Application:
    application_id: str
    citizen_id: str
    department: str
    service_type: str
    status: str
    submitted_at: datetime


@dataclass
class SchemeApplication:
    application_id: str
    citizen_id: str
    scheme_id: str
    status: str
    created_at: datetime
    submitted_at: datetime | None = None
    scheme_title: str | None = None


@dataclass
class Grievance:
    grievance_id: str
    citizen_id: str
    department: str
    description: str
    status: str
    created_at: datetime
    category: str | None = None


@dataclass
class Scheme:
    """A government scheme with its ordered eligibility criteria."""

    scheme_id: str
    title: str
    department: str
    description: str
    eligibility: str | None = None
    criteria: list[EligibilityCriterion] = field(default_factory=list)
    required_documents: list[str] = field(default_factory=list)
    is_active: bool = True


@dataclass
class Policy:
    policy_id: str
    title: str
    department: str
    description: str
    category: str | None = None
    effective_from: date | None = None
    document_url: str | None = None


@dataclass
class Tariff:
    tariff_id: str
    name: str
    department: str
    rate: float
    unit: str
    description: str | None = None
    category: str | None = None
    effective_from: date | None = None
