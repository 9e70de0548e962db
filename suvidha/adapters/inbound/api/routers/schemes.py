"""Scheme eligibility endpoints."""

from fastapi import APIRouter

from .....core.domain.exceptions import UnauthorizedError
from ..deps import CitizenId, EligibilityService
from ..models import (
    EligibilityCheckRequest,
    EligibilityCheckResponse,
    ErrorResponse,
    SavedAnswersResponse,
)

router = APIRouter(prefix="/api/schemes", tags=["schemes"])


@router.post(
    "/{scheme_id}/check-eligibility",
    response_model=EligibilityCheckResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Saving answers requires a citizen"},
        404: {"model": ErrorResponse, "description": "Unknown scheme"},
    },
)
def check_eligibility(
    scheme_id: str,
    request: EligibilityCheckRequest,
    service: EligibilityService,
    citizen_id: CitizenId,
) -> EligibilityCheckResponse:
    """Score survey answers against the scheme's weighted criteria."""
    check = service.check(
        scheme_id,
        request.answers,
        citizen_id=citizen_id,
        save_to_profile=request.save_to_profile,
    )
    return EligibilityCheckResponse.model_validate(check.to_dict())


@router.get(
    "/{scheme_id}/saved-answers",
    response_model=SavedAnswersResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not logged in"},
        404: {"model": ErrorResponse, "description": "Unknown scheme"},
    },
)
def saved_answers(
    scheme_id: str, service: EligibilityService, citizen_id: CitizenId
) -> SavedAnswersResponse:
    """Answers from the citizen's profile that pre-fill this scheme's survey."""
    if not citizen_id:
        raise UnauthorizedError("Please log in to continue.")
    return SavedAnswersResponse(scheme_id=scheme_id, answers=service.prefill(scheme_id, citizen_id))
