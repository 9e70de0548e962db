"""Weighted rule evaluator for scheme eligibility surveys.

Each criterion is scored pass/fail against its validation rules; the
citizen's score is the sum of the weightages of the criteria they pass.
The tier thresholds are policy constants shared with the portal client.
"""

import logging
import math
from typing import Any

from ..domain import (
    AnswerSet,
    CriterionOutcome,
    EligibilityCriterion,
    EligibilityResult,
    EligibilityTier,
    QuestionType,
)

logger = logging.getLogger(__name__)

ELIGIBLE_THRESHOLD = 80.0
PARTIAL_THRESHOLD = 50.0
DEFAULT_EXPECTED_ANSWER = "YES"

_NUMERIC_TYPES = {QuestionType.NUMBER, QuestionType.RANGE}
_CHOICE_TYPES = {QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE}
_UNRULED_TYPES = {QuestionType.TEXT, QuestionType.DATE}


def parse_number(answer: Any) -> float | None:
    """Parse an answer as a finite real number, or None if it is not one."""
    if answer is None or isinstance(answer, bool):
        return None
    if isinstance(answer, int | float):
        value = float(answer)
    else:
        try:
            value = float(str(answer).strip())
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def classify(percentage: float) -> EligibilityTier:
    """Map a percentage to its eligibility tier."""
    if percentage >= ELIGIBLE_THRESHOLD:
        return EligibilityTier.ELIGIBLE
    if percentage >= PARTIAL_THRESHOLD:
        return EligibilityTier.PARTIALLY_ELIGIBLE
    return EligibilityTier.NOT_ELIGIBLE


def eligibility_message(tier: EligibilityTier, percentage: float) -> str:
    """User-facing explanation of a tier."""
    if tier is EligibilityTier.ELIGIBLE:
        return (
            "Congratulations! You are eligible for this scheme. "
            "You can proceed with the application."
        )
    if tier is EligibilityTier.PARTIALLY_ELIGIBLE:
        return (
            f"You meet {percentage:.0f}% of the eligibility criteria. "
            "You may still apply, but approval is subject to review."
        )
    return "Unfortunately, you do not meet the eligibility criteria for this scheme at this time."


class EligibilityEvaluator:
    """Scores an answer set against a scheme's ordered criteria.

    The evaluator is a pure function of its inputs. Question types without
    rules (TEXT, DATE) pass. Unrecognised types pass too unless ``strict`` is
    set, in which case they fail closed; either way they are logged so an
    administrator can fix the scheme configuration.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def evaluate(self, criteria: list[EligibilityCriterion], answers: AnswerSet) -> EligibilityResult:
        """Evaluate every criterion and aggregate the weighted score.

        Args:
            criteria: The scheme's criteria, in evaluation order.
            answers: Criterion id -> raw answer.

        Returns:
            EligibilityResult with per-criterion breakdown.
        """
        total_score = 0
        max_score = 0
        breakdown: list[CriterionOutcome] = []

        for criterion in criteria:
            answer = answers.get(criterion.criterion_id)
            max_score += criterion.weightage

            passed = self.check(criterion, answer)
            score = criterion.weightage if passed else 0
            total_score += score

            breakdown.append(
                CriterionOutcome(
                    criterion_id=criterion.criterion_id,
                    question_text=criterion.question_text,
                    answer=answer,
                    passed=passed,
                    score=score,
                )
            )

        percentage = (total_score / max_score) * 100 if max_score > 0 else 100.0

        return EligibilityResult(
            total_score=total_score,
            max_score=max_score,
            percentage=percentage,
            tier=classify(percentage),
            breakdown=breakdown,
        )

    def check(self, criterion: EligibilityCriterion, answer: Any) -> bool:
        """Whether a single answer satisfies its criterion."""
        rules = criterion.validation_rules or {}
        question_type = QuestionType.parse(criterion.question_type)

        if question_type is QuestionType.YES_NO:
            expected = rules.get("expectedAnswer") or DEFAULT_EXPECTED_ANSWER
            return answer == expected

        if question_type in _NUMERIC_TYPES:
            value = parse_number(answer)
            if value is None:
                return False
            minimum = rules.get("min")
            maximum = rules.get("max")
            if minimum is not None and value < float(minimum):
                return False
            if maximum is not None and value > float(maximum):
                return False
            return True

        if question_type in _CHOICE_TYPES:
            valid_options = rules.get("validOptions") or []
            if not valid_options:
                return True
            if isinstance(answer, list | tuple | set):
                return bool(answer) and all(option in valid_options for option in answer)
            return answer in valid_options

        if question_type in _UNRULED_TYPES:
            return True

        logger.warning(
            "Criterion %s of scheme %s has unrecognised question type %r",
            criterion.criterion_id,
            criterion.scheme_id,
            criterion.question_type,
        )
        return not self.strict
