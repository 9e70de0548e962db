"""Loads portal records from a JSON seed document into the SQLite store.

The document uses the portal's camelCase field names::

    {
      "schemes": [{"id", "title", "department", "description", "eligibility",
                   "requiredDocuments": [...],
                   "eligibilityCriteria": [{"questionText", "questionType",
                                            "weightage", "order", "options",
                                            "validationRules", "isRequired"}]}],
      "policies": [...], "tariffs": [...],
      "citizens": [{"id", "fullName", "mobileNumber", "email",
                    "consentToSaveAnswers",
                    "serviceAccounts": [{"id", "department", "consumerId", "address",
                                         "bills": [{"id", "amount", "dueDate", "isPaid"}]}]}]
    }
"""

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from ....core.domain import (
    Bill,
    Citizen,
    CitizenProfile,
    EligibilityCriterion,
    Policy,
    QuestionType,
    Scheme,
    ServiceAccount,
    Tariff,
)
from ....core.domain.exceptions import InvalidInputError
from .sqlite_store import SQLiteDocumentStore


@dataclass
class SeedReport:
    schemes: int = 0
    policies: int = 0
    tariffs: int = 0
    citizens: int = 0
    bills: int = 0


def _optional_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _scheme(raw: dict[str, Any]) -> Scheme:
    scheme_id = raw["id"]
    criteria = [
        EligibilityCriterion(
            criterion_id=c.get("id") or f"{scheme_id}-q{idx}",
            scheme_id=scheme_id,
            question_text=c["questionText"],
            question_type=QuestionType.parse(c["questionType"]),
            weightage=int(c.get("weightage", 0)),
            order=int(c.get("order", idx)),
            options=list(c.get("options") or []),
            validation_rules=dict(c.get("validationRules") or {}),
            is_required=bool(c.get("isRequired", True)),
        )
        for idx, c in enumerate(raw.get("eligibilityCriteria") or [], start=1)
    ]
    return Scheme(
        scheme_id=scheme_id,
        title=raw["title"],
        department=raw["department"],
        description=raw["description"],
        eligibility=raw.get("eligibility"),
        criteria=criteria,
        required_documents=list(raw.get("requiredDocuments") or []),
        is_active=bool(raw.get("isActive", True)),
    )


def load_seed(store: SQLiteDocumentStore, data: dict[str, Any]) -> SeedReport:
    """Insert every record in a parsed seed document.

    Raises:
        InvalidInputError: If a record is missing a required field.
    """
    report = SeedReport()
    try:
        for raw in data.get("schemes", []):
            store.add_scheme(_scheme(raw))
            report.schemes += 1

        for raw in data.get("policies", []):
            store.add_policy(
                Policy(
                    policy_id=raw["id"],
                    title=raw["title"],
                    department=raw["department"],
                    description=raw["description"],
                    category=raw.get("category"),
                    effective_from=_optional_date(raw.get("effectiveFrom")),
                    document_url=raw.get("documentUrl"),
                )
            )
            report.policies += 1

        for raw in data.get("tariffs", []):
            store.add_tariff(
                Tariff(
                    tariff_id=raw["id"],
                    name=raw["name"],
                    department=raw["department"],
                    rate=float(raw["rate"]),
                    unit=raw["unit"],
                    description=raw.get("description"),
                    category=raw.get("category"),
                    effective_from=_optional_date(raw.get("effectiveFrom")),
                )
            )
            report.tariffs += 1

        for raw in data.get("citizens", []):
            accounts = raw.get("serviceAccounts") or []
            store.add_citizen(
                Citizen(
                    citizen_id=raw["id"],
                    full_name=raw["fullName"],
                    mobile_number=raw["mobileNumber"],
                    email=raw.get("email"),
                    profile=CitizenProfile(
                        citizen_id=raw["id"],
                        consent_to_save_answers=bool(raw.get("consentToSaveAnswers", False)),
                        details=dict(raw.get("profile") or {}),
                    ),
                    service_accounts=[
                        ServiceAccount(
                            account_id=a["id"],
                            citizen_id=raw["id"],
                            department=a["department"],
                            consumer_id=a["consumerId"],
                            address=a.get("address", ""),
                        )
                        for a in accounts
                    ],
                )
            )
            report.citizens += 1
            for account in accounts:
                for bill in account.get("bills") or []:
                    store.add_bill(
                        Bill(
                            bill_id=bill["id"],
                            account_id=account["id"],
                            amount=float(bill["amount"]),
                            due_date=date.fromisoformat(bill["dueDate"]),
                            is_paid=bool(bill.get("isPaid", False)),
                        )
                    )
                    report.bills += 1
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid seed document: {e}", cause=e) from e

    return report


def load_seed_file(store: SQLiteDocumentStore, path: str | Path) -> SeedReport:
    with open(path, encoding="utf-8") as f:
        return load_seed(store, json.load(f))
