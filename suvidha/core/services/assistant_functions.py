"""Functions the assistant model may call, and their dispatcher.

Each function is declared once: a pydantic model describes and validates its
parameters (the tool JSON schema sent to the provider is derived from it),
``kind`` says whether it reads data, changes data or only instructs the
client to navigate, and ``handler`` executes it against the document store.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ..domain import (
    Application,
    Bill,
    FunctionOutcome,
    Grievance,
    KnowledgeCategory,
    Payment,
    SchemeApplication,
)
from ..domain.exceptions import (
    NotFoundError,
    SuvidhaError,
    UnauthorizedError,
    ValidationFailedError,
)
from ..ports.document_store_port import DocumentStorePort
from .knowledge_retriever import KnowledgeRetriever
from .scheme_eligibility import SchemeEligibilityService

logger = logging.getLogger(__name__)

DepartmentName = Literal["ELECTRICITY", "WATER", "GAS", "SANITATION", "MUNICIPAL"]
ApplicationStatusName = Literal["SUBMITTED", "UNDER_PROCESS", "APPROVED", "REJECTED", "COMPLETED"]
SchemeApplicationStatusName = Literal[
    "DRAFT", "SUBMITTED", "UNDER_REVIEW", "DOCUMENTS_REQUIRED", "APPROVED", "REJECTED"
]
GrievanceStatusName = Literal["PENDING", "IN_PROGRESS", "RESOLVED", "CLOSED"]
CategoryName = Literal["scheme", "policy", "tariff", "faq", "service"]
PageName = Literal[
    "login",
    "dashboard",
    "profile",
    "all-bills",
    "all-usage",
    "my-applications",
    "grievances",
    "schemes",
    "policies",
    "tariffs",
    "track-status",
    "scheme-detail",
    "scheme-apply",
]

LOGIN_MESSAGE = "Please log in to continue."


class FunctionKind(str, Enum):
    """What invoking a function does."""

    QUERY = "query"
    ACTION = "action"
    NAVIGATION = "navigation"


# -----------------------------------------------------------------------------
# Parameter models
# -----------------------------------------------------------------------------


class FunctionParams(BaseModel):
    """Base for parameter models: accepts camelCase wire names, ignores extras."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NoParams(FunctionParams):
    pass


class BillsParams(FunctionParams):
    department: DepartmentName | None = Field(None, description="Filter bills by department (optional)")
    is_paid: bool | None = Field(
        None,
        alias="isPaid",
        description="Filter by payment status: true for paid bills, false for unpaid (optional)",
    )


class ApplicationsParams(FunctionParams):
    department: DepartmentName | None = Field(
        None, description="Filter applications by department (optional)"
    )
    status: ApplicationStatusName | None = Field(
        None, description="Filter by application status (optional)"
    )


class SchemeApplicationsParams(FunctionParams):
    status: SchemeApplicationStatusName | None = Field(
        None, description="Filter by scheme application status (optional)"
    )


class GrievancesParams(FunctionParams):
    status: GrievanceStatusName | None = Field(None, description="Filter by grievance status (optional)")


class CreateGrievanceParams(FunctionParams):
    department: DepartmentName = Field(..., description="Department for the grievance")
    description: str = Field(..., min_length=1, description="Detailed description of the grievance")


class SchemeDetailsParams(FunctionParams):
    scheme_name: str = Field(
        ...,
        alias="schemeName",
        min_length=1,
        description="Name or partial name of the scheme to search for",
    )


class SchemeEligibilityParams(FunctionParams):
    scheme_id: str = Field(
        ..., alias="schemeId", min_length=1, description="ID of the scheme to check eligibility for"
    )


class PayBillParams(FunctionParams):
    bill_id: str = Field(..., alias="billId", min_length=1, description="Bill ID to pay")


class BulkPayParams(FunctionParams):
    bill_ids: list[str] = Field(
        ..., alias="billIds", min_length=1, description="Array of bill IDs to pay"
    )


class NavigateParams(FunctionParams):
    page: PageName = Field(..., description="The page to navigate to")
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Optional parameters for the page (e.g., scheme ID, application ID)",
    )


class KnowledgeSearchParams(FunctionParams):
    query: str = Field(..., min_length=1, description="The query to search for in the knowledge base")
    category: CategoryName | None = Field(
        None, description="Category to filter search results (optional)"
    )


def _clean_schema(node: Any) -> Any:
    """Strip pydantic-only keys and collapse ``X | None`` into ``X``."""
    if isinstance(node, list):
        return [_clean_schema(item) for item in node]
    if not isinstance(node, dict):
        return node

    cleaned = {
        key: (value if key == "properties" else _clean_schema(value))
        for key, value in node.items()
        if key not in ("title", "default")
    }
    if "properties" in cleaned:
        cleaned["properties"] = {
            name: _clean_schema(prop) for name, prop in cleaned["properties"].items()
        }

    any_of = cleaned.pop("anyOf", None)
    if any_of is not None:
        branches = [branch for branch in any_of if branch.get("type") != "null"]
        if len(branches) == 1:
            merged = dict(branches[0])
            merged.update(cleaned)
            return merged
        cleaned["anyOf"] = branches
    return cleaned


def parameters_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema for a parameter model, in the shape tool APIs expect."""
    schema = _clean_schema(model.model_json_schema(by_alias=True))
    schema.setdefault("properties", {})
    schema["type"] = "object"
    return schema


@dataclass(frozen=True)
class AssistantFunction:
    """One entry of the function registry."""

    name: str
    description: str
    parameters: type[FunctionParams]
    kind: FunctionKind
    requires_identity: bool
    handler: Callable[[Any, str | None], dict[str, Any]]

    def declaration(self) -> dict[str, Any]:
        """Provider-neutral tool declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": parameters_schema(self.parameters),
        }

    def validate(self, arguments: dict[str, Any] | None) -> FunctionParams:
        """Validate raw model arguments against the parameter model.

        Raises:
            ValidationFailedError: If the arguments do not match the schema.
        """
        try:
            return self.parameters.model_validate(arguments or {})
        except PydanticValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationFailedError(
                f"Invalid parameters for {self.name}: {'; '.join(errors)}",
                cause=e,
                context={"function": self.name},
            ) from e


# -----------------------------------------------------------------------------
# Result shaping
# -----------------------------------------------------------------------------


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def _bill_dict(bill: Bill) -> dict[str, Any]:
    return {
        "id": bill.bill_id,
        "department": bill.department,
        "consumerId": bill.consumer_id,
        "amount": bill.amount,
        "dueDate": _iso(bill.due_date),
        "isPaid": bill.is_paid,
    }


def _payment_dict(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.payment_id,
        "billId": payment.bill_id,
        "amount": payment.amount,
        "status": payment.status.value,
        "receiptNo": payment.receipt_no,
    }


def _application_dict(app: Application) -> dict[str, Any]:
    return {
        "id": app.application_id,
        "department": app.department,
        "serviceType": app.service_type,
        "status": app.status,
        "submittedAt": _iso(app.submitted_at),
    }


def _scheme_application_dict(app: SchemeApplication) -> dict[str, Any]:
    return {
        "id": app.application_id,
        "schemeId": app.scheme_id,
        "schemeTitle": app.scheme_title,
        "status": app.status,
        "submittedAt": _iso(app.submitted_at),
    }


def _grievance_dict(grievance: Grievance) -> dict[str, Any]:
    return {
        "id": grievance.grievance_id,
        "department": grievance.department,
        "category": grievance.category,
        "description": grievance.description,
        "status": grievance.status,
        "createdAt": _iso(grievance.created_at),
    }


class FunctionRegistry:
    """The fixed set of assistant functions, keyed by name."""

    def __init__(
        self,
        store: DocumentStorePort,
        retriever: KnowledgeRetriever,
        eligibility: SchemeEligibilityService,
        top_k: int = 5,
    ) -> None:
        self.store = store
        self.retriever = retriever
        self.eligibility = eligibility
        self.top_k = top_k
        self._functions: dict[str, AssistantFunction] = {
            fn.name: fn for fn in self._declare()
        }

    def _declare(self) -> list[AssistantFunction]:
        return [
            AssistantFunction(
                name="get_user_profile",
                description=(
                    "Get the user's profile information including name, contact details, "
                    "and registered service accounts"
                ),
                parameters=NoParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._get_user_profile,
            ),
            AssistantFunction(
                name="get_user_bills",
                description=(
                    "Get the user's bills for all service accounts or a specific department. "
                    "Can filter by paid/unpaid status."
                ),
                parameters=BillsParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._get_user_bills,
            ),
            AssistantFunction(
                name="get_user_applications",
                description=(
                    "Get the user's submitted applications and their status. "
                    "Can filter by department or status."
                ),
                parameters=ApplicationsParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._get_user_applications,
            ),
            AssistantFunction(
                name="get_scheme_applications",
                description="Get the user's scheme applications and their status. Can filter by status.",
                parameters=SchemeApplicationsParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._get_scheme_applications,
            ),
            AssistantFunction(
                name="get_user_grievances",
                description="Get the user's filed grievances and their resolution status",
                parameters=GrievancesParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._get_user_grievances,
            ),
            AssistantFunction(
                name="create_grievance",
                description=(
                    "File a new grievance/complaint on behalf of the user. "
                    "Requires department and description."
                ),
                parameters=CreateGrievanceParams,
                kind=FunctionKind.ACTION,
                requires_identity=True,
                handler=self._create_grievance,
            ),
            AssistantFunction(
                name="get_scheme_details",
                description=(
                    "Get detailed information about a specific government scheme including "
                    "eligibility criteria and benefits"
                ),
                parameters=SchemeDetailsParams,
                kind=FunctionKind.QUERY,
                requires_identity=False,
                handler=self._get_scheme_details,
            ),
            AssistantFunction(
                name="check_scheme_eligibility",
                description=(
                    "Check if the user is eligible for a specific scheme based on their "
                    "saved eligibility answers"
                ),
                parameters=SchemeEligibilityParams,
                kind=FunctionKind.QUERY,
                requires_identity=True,
                handler=self._check_scheme_eligibility,
            ),
            AssistantFunction(
                name="pay_bill",
                description=(
                    "Pay a single unpaid bill for the user. This will mark the bill as paid "
                    "and create a payment record."
                ),
                parameters=PayBillParams,
                kind=FunctionKind.ACTION,
                requires_identity=True,
                handler=self._pay_bill,
            ),
            AssistantFunction(
                name="bulk_pay_bills",
                description=(
                    "Pay multiple unpaid bills for the user in a single action. "
                    "Either every bill is paid or none is."
                ),
                parameters=BulkPayParams,
                kind=FunctionKind.ACTION,
                requires_identity=True,
                handler=self._bulk_pay_bills,
            ),
            AssistantFunction(
                name="navigate_to_page",
                description=(
                    "Navigate the user to a specific page in the application. Use this when "
                    "user asks to go somewhere or wants to perform an action that requires a "
                    "specific page."
                ),
                parameters=NavigateParams,
                kind=FunctionKind.NAVIGATION,
                requires_identity=False,
                handler=self._navigate_to_page,
            ),
            AssistantFunction(
                name="search_knowledge_base",
                description=(
                    "Search the knowledge base for information about schemes, policies, "
                    "procedures, and FAQs. Use this for general queries about services."
                ),
                parameters=KnowledgeSearchParams,
                kind=FunctionKind.QUERY,
                requires_identity=False,
                handler=self._search_knowledge_base,
            ),
        ]

    # Registry access

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    @property
    def names(self) -> list[str]:
        return list(self._functions)

    def get(self, name: str) -> AssistantFunction | None:
        return self._functions.get(name)

    def declarations(self) -> list[dict[str, Any]]:
        """Tool declarations for every registered function."""
        return [fn.declaration() for fn in self._functions.values()]

    def dispatch(
        self, name: str, arguments: dict[str, Any] | None, citizen_id: str | None
    ) -> FunctionOutcome:
        """Validate and execute a model-requested function.

        Never raises for expected failures: unknown functions, invalid
        parameters and store-level rejections come back as an ``error``
        result for the model to explain. A missing citizen for an
        identity-requiring function comes back as a navigate-to-login action.
        """
        log_context = {"function": name, "citizen_id": citizen_id}
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            logger.warning(
                "Model sent non-object arguments for %s: %s",
                name,
                type(arguments).__name__,
                extra=log_context,
            )
            return FunctionOutcome(
                name, {}, {"error": f"Invalid parameters for {name}: arguments must be an object"}
            )
        arguments = dict(arguments)
        fn = self._functions.get(name)
        if fn is None:
            logger.warning("Model requested unknown function %s", name, extra=log_context)
            return FunctionOutcome(name, arguments, {"error": f"Unknown function: {name}"})

        try:
            if fn.requires_identity and not citizen_id:
                raise UnauthorizedError(LOGIN_MESSAGE, context={"function": name})
            params = fn.validate(arguments)
            logger.info("Executing function %s", name, extra=log_context)
            result = fn.handler(params, citizen_id)
        except UnauthorizedError as e:
            logger.info("Function %s requires login", name, extra=log_context)
            return FunctionOutcome(
                name,
                arguments,
                {"action": "navigate", "page": "login", "message": e.message},
                requires_action=True,
            )
        except SuvidhaError as e:
            logger.warning(
                "Function %s failed [%s]: %s", name, e.error_code, e.message, extra=log_context
            )
            return FunctionOutcome(name, arguments, {"error": e.message})

        return FunctionOutcome(
            name,
            arguments,
            result,
            requires_action=fn.kind is FunctionKind.NAVIGATION,
        )

    # Handlers

    def _get_user_profile(self, params: NoParams, citizen_id: str | None) -> dict[str, Any]:
        citizen = self.store.get_citizen(citizen_id or "")
        if citizen is None:
            raise NotFoundError("User profile not found", context={"citizen_id": citizen_id})

        next_due: dict[str, Bill] = {}
        for bill in self.store.list_bills(citizen.citizen_id, is_paid=False, limit=100):
            current = next_due.get(bill.account_id)
            if current is None or bill.due_date < current.due_date:
                next_due[bill.account_id] = bill

        profile = citizen.profile
        return {
            "name": citizen.full_name,
            "mobile": citizen.mobile_number,
            "email": citizen.email,
            "profile": dict(profile.details) if profile else None,
            "serviceAccounts": [
                {
                    "department": account.department,
                    "consumerId": account.consumer_id,
                    "address": account.address,
                    "nextBillDue": (
                        {
                            "amount": next_due[account.account_id].amount,
                            "dueDate": _iso(next_due[account.account_id].due_date),
                        }
                        if account.account_id in next_due
                        else None
                    ),
                }
                for account in citizen.service_accounts
            ],
        }

    def _get_user_bills(self, params: BillsParams, citizen_id: str | None) -> dict[str, Any]:
        bills = self.store.list_bills(
            citizen_id or "", department=params.department, is_paid=params.is_paid
        )
        unpaid = [bill for bill in bills if not bill.is_paid]
        return {
            "bills": [_bill_dict(bill) for bill in bills],
            "totalUnpaid": len(unpaid),
            "totalAmount": sum(bill.amount for bill in unpaid),
        }

    def _get_user_applications(
        self, params: ApplicationsParams, citizen_id: str | None
    ) -> dict[str, Any]:
        applications = self.store.list_applications(
            citizen_id or "", department=params.department, status=params.status
        )
        return {
            "applications": [_application_dict(app) for app in applications],
            "total": len(applications),
        }

    def _get_scheme_applications(
        self, params: SchemeApplicationsParams, citizen_id: str | None
    ) -> dict[str, Any]:
        applications = self.store.list_scheme_applications(citizen_id or "", status=params.status)
        return {
            "applications": [_scheme_application_dict(app) for app in applications],
            "total": len(applications),
        }

    def _get_user_grievances(self, params: GrievancesParams, citizen_id: str | None) -> dict[str, Any]:
        grievances = self.store.list_grievances(citizen_id or "", status=params.status)
        return {
            "grievances": [_grievance_dict(g) for g in grievances],
            "total": len(grievances),
        }

    def _create_grievance(
        self, params: CreateGrievanceParams, citizen_id: str | None
    ) -> dict[str, Any]:
        grievance = self.store.create_grievance(
            citizen_id or "", params.department, params.description.strip()
        )
        return {
            "message": "Grievance filed successfully",
            "grievance": {
                "id": grievance.grievance_id,
                "department": grievance.department,
                "status": grievance.status,
                "createdAt": _iso(grievance.created_at),
            },
        }

    def _get_scheme_details(
        self, params: SchemeDetailsParams, citizen_id: str | None
    ) -> dict[str, Any]:
        schemes = self.store.find_schemes_by_title(params.scheme_name.strip(), limit=3)
        if not schemes:
            raise NotFoundError(f'No schemes found matching "{params.scheme_name}"')
        return {
            "schemes": [
                {
                    "id": scheme.scheme_id,
                    "title": scheme.title,
                    "department": scheme.department,
                    "description": scheme.description,
                    "eligibility": scheme.eligibility,
                    "eligibilityCriteria": [c.question_text for c in scheme.criteria],
                    "requiredDocuments": list(scheme.required_documents),
                }
                for scheme in schemes
            ]
        }

    def _check_scheme_eligibility(
        self, params: SchemeEligibilityParams, citizen_id: str | None
    ) -> dict[str, Any]:
        scheme = self.store.get_scheme(params.scheme_id)
        if scheme is None:
            raise NotFoundError("Scheme not found", context={"scheme_id": params.scheme_id})

        saved = self.eligibility.prefill(scheme.scheme_id, citizen_id or "")
        unanswered = [
            c for c in scheme.criteria if c.is_required and c.criterion_id not in saved
        ]

        result: dict[str, Any] = {
            "scheme": {
                "id": scheme.scheme_id,
                "title": scheme.title,
                "department": scheme.department,
            },
            "eligibilityCriteria": [
                {
                    "question": c.question_text,
                    "type": str(getattr(c.question_type, "value", c.question_type)),
                    "options": list(c.options),
                }
                for c in scheme.criteria
            ],
            "hasSavedAnswers": bool(saved),
        }

        if unanswered:
            result["unansweredQuestions"] = [c.question_text for c in unanswered]
            result["recommendation"] = (
                "Please answer the eligibility questions to check if you qualify for this scheme."
            )
            return result

        check = self.eligibility.check(scheme.scheme_id, saved)
        result["evaluation"] = {
            "eligibilityStatus": check.result.tier.value,
            "score": check.result.total_score,
            "maxScore": check.result.max_score,
            "percentage": round(check.result.percentage, 2),
        }
        result["recommendation"] = check.message
        return result

    def _pay_bill(self, params: PayBillParams, citizen_id: str | None) -> dict[str, Any]:
        bill = self.store.get_unpaid_bill(citizen_id or "", params.bill_id)
        if bill is None:
            raise NotFoundError(
                "Bill not found, already paid, or not accessible.",
                context={"bill_id": params.bill_id},
            )
        payment = self.store.pay_bills(citizen_id or "", [bill.bill_id])[0]
        return {
            "message": "Payment successful",
            "payment": _payment_dict(payment),
            "bill": {"id": bill.bill_id, "department": bill.department, "amount": bill.amount},
        }

    def _bulk_pay_bills(self, params: BulkPayParams, citizen_id: str | None) -> dict[str, Any]:
        payments = self.store.pay_bills(citizen_id or "", params.bill_ids)
        return {
            "message": "Bulk payment successful",
            "count": len(payments),
            "totalAmount": sum(payment.amount for payment in payments),
            "payments": [_payment_dict(payment) for payment in payments],
        }

    def _navigate_to_page(self, params: NavigateParams, citizen_id: str | None) -> dict[str, Any]:
        return {"action": "navigate", "page": params.page, "params": params.params}

    def _search_knowledge_base(
        self, params: KnowledgeSearchParams, citizen_id: str | None
    ) -> dict[str, Any]:
        category = KnowledgeCategory(params.category) if params.category else None
        results = self.retriever.search(params.query, category=category, top_k=self.top_k)
        return {
            "results": [result.to_dict() for result in results],
            "totalResults": len(results),
        }


__all__ = [
    "AssistantFunction",
    "FunctionKind",
    "FunctionRegistry",
    "LOGIN_MESSAGE",
    "parameters_schema",
]
