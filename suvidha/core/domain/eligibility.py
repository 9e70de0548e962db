"""Eligibility criteria, answers and scoring results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Criterion id -> raw answer (string, number, or selected option(s)).
AnswerSet = dict[str, Any]


class QuestionType(str, Enum):
    """Survey question types understood by the evaluator."""

    YES_NO = "YES_NO"
    NUMBER = "NUMBER"
    RANGE = "RANGE"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TEXT = "TEXT"
    DATE = "DATE"

    @classmethod
    def parse(cls, value: "str | QuestionType") -> "QuestionType | str":
        """Return the enum member, or the raw string for an unrecognised type."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return str(value)


class EligibilityTier(str, Enum):
    """Three-way classification derived from the percentage score."""

    ELIGIBLE = "ELIGIBLE"
    PARTIALLY_ELIGIBLE = "PARTIALLY_ELIGIBLE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"


@dataclass
class EligibilityCriterion:
    """A single weighted question used to score a citizen for a scheme.

    ``validation_rules`` depends on the question type: ``expectedAnswer`` for
    YES_NO, ``min``/``max`` for NUMBER and RANGE, ``validOptions`` for the
    choice types.
    """

    criterion_id: str
    scheme_id: str
    question_text: str
    question_type: QuestionType | str
    weightage: int
    order: int = 0
    options: list[str] = field(default_factory=list)
    validation_rules: dict[str, Any] = field(default_factory=dict)
    is_required: bool = True


@dataclass
class CriterionOutcome:
    """Pass/fail for one criterion."""

    criterion_id: str
    question_text: str
    answer: Any
    passed: bool
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "questionId": self.criterion_id,
            "question": self.question_text,
            "answer": self.answer,
            "passed": self.passed,
            "score": self.score,
        }


@dataclass
class EligibilityResult:
    """Aggregate score for one evaluation; recomputed on demand, never stored."""

    total_score: int
    max_score: int
    percentage: float
    tier: EligibilityTier
    breakdown: list[CriterionOutcome] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return self.tier is EligibilityTier.ELIGIBLE


@dataclass
class SavedAnswer:
    """An answer kept on a citizen's profile, keyed by normalized question text."""

    answer: Any
    question_type: str
    saved_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "questionType": self.question_type,
            "savedAt": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedAnswer":
        return cls(
            answer=data.get("answer"),
            question_type=str(data.get("questionType", "")),
            saved_at=datetime.fromisoformat(data["savedAt"]),
        )
