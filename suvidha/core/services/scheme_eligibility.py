"""Scheme-application eligibility workflow.

Wraps the pure evaluator with the store: loads a scheme's criteria, scores
the answers, and optionally keeps the answers on the citizen's profile so
other schemes asking the same question can pre-fill them.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..domain import AnswerSet, EligibilityResult, SavedAnswer, Scheme
from ..domain.exceptions import NotFoundError, UnauthorizedError
from ..domain.utils import normalize_question_text
from ..ports.document_store_port import DocumentStorePort
from .eligibility_evaluator import EligibilityEvaluator, eligibility_message

logger = logging.getLogger(__name__)


@dataclass
class EligibilityCheck:
    """Outcome of checking one scheme."""

    scheme: Scheme
    result: EligibilityResult
    message: str
    saved_to_profile: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligible": self.result.eligible,
            "eligibilityStatus": self.result.tier.value,
            "score": self.result.total_score,
            "maxScore": self.result.max_score,
            "percentage": round(self.result.percentage, 2),
            "evaluationResults": [outcome.to_dict() for outcome in self.result.breakdown],
            "message": self.message,
            "savedToProfile": self.saved_to_profile,
        }


def _has_answer(answer: Any) -> bool:
    return answer is not None and answer != "" and answer != []


class SchemeEligibilityService:
    """Checks a citizen's survey answers against a scheme."""

    def __init__(self, store: DocumentStorePort, evaluator: EligibilityEvaluator | None = None) -> None:
        self.store = store
        self.evaluator = evaluator or EligibilityEvaluator()

    def _load_scheme(self, scheme_id: str) -> Scheme:
        scheme = self.store.get_scheme(scheme_id)
        if scheme is None:
            raise NotFoundError("Scheme not found", context={"scheme_id": scheme_id})
        return scheme

    def check(
        self,
        scheme_id: str,
        answers: AnswerSet,
        citizen_id: str | None = None,
        save_to_profile: bool = False,
    ) -> EligibilityCheck:
        """Evaluate answers for a scheme and optionally save them.

        Raises:
            NotFoundError: If the scheme does not exist.
            UnauthorizedError: If saving is requested without a citizen.
        """
        if save_to_profile and not citizen_id:
            raise UnauthorizedError("Log in to save eligibility answers to your profile")

        scheme = self._load_scheme(scheme_id)
        result = self.evaluator.evaluate(scheme.criteria, answers)
        logger.info(
            "Scheme %s evaluated: %d/%d (%.2f%%) -> %s",
            scheme_id,
            result.total_score,
            result.max_score,
            result.percentage,
            result.tier.value,
        )

        if save_to_profile and citizen_id:
            self.save_answers(citizen_id, scheme, answers)

        return EligibilityCheck(
            scheme=scheme,
            result=result,
            message=eligibility_message(result.tier, result.percentage),
            saved_to_profile=save_to_profile,
        )

    def save_answers(self, citizen_id: str, scheme: Scheme, answers: AnswerSet) -> int:
        """Keep non-empty answers on the profile keyed by normalized question text.

        Returns:
            Number of answers saved.
        """
        now = datetime.now(UTC)
        to_save: dict[str, SavedAnswer] = {}
        for criterion in scheme.criteria:
            answer = answers.get(criterion.criterion_id)
            if not _has_answer(answer):
                continue
            to_save[normalize_question_text(criterion.question_text)] = SavedAnswer(
                answer=answer,
                question_type=str(getattr(criterion.question_type, "value", criterion.question_type)),
                saved_at=now,
            )

        if to_save:
            self.store.save_answers(citizen_id, to_save)
        return len(to_save)

    def prefill(self, scheme_id: str, citizen_id: str) -> AnswerSet:
        """Map saved profile answers onto this scheme's criteria.

        A saved answer is reused only when the criterion asks the same
        (normalized) question with the same question type.
        """
        scheme = self._load_scheme(scheme_id)
        profile = self.store.get_profile(citizen_id)
        if profile is None or not profile.consent_to_save_answers:
            return {}

        prefilled: AnswerSet = {}
        for criterion in scheme.criteria:
            saved = profile.saved_answers.get(normalize_question_text(criterion.question_text))
            question_type = str(getattr(criterion.question_type, "value", criterion.question_type))
            if saved is not None and saved.question_type == question_type:
                prefilled[criterion.criterion_id] = saved.answer
        return prefilled
