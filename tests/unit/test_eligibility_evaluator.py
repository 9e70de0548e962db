"""Unit tests for the weighted eligibility evaluator."""

import pytest
from fakes import make_criterion

from suvidha.core.domain import EligibilityTier, QuestionType
from suvidha.core.services.eligibility_evaluator import (
    EligibilityEvaluator,
    classify,
    eligibility_message,
    parse_number,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def evaluator():
    return EligibilityEvaluator()


class TestScoring:
    def test_partial_eligibility(self, evaluator):
        """Passing 30 and 40 of [30, 40, 20, 10] scores 70%."""
        criteria = [
            make_criterion("q1", weightage=30),
            make_criterion("q2", weightage=40),
            make_criterion("q3", weightage=20),
            make_criterion("q4", weightage=10),
        ]
        result = evaluator.evaluate(criteria, {"q1": "YES", "q2": "YES", "q3": "NO", "q4": "NO"})

        assert result.total_score == 70
        assert result.max_score == 100
        assert result.percentage == pytest.approx(70.0)
        assert result.tier is EligibilityTier.PARTIALLY_ELIGIBLE
        assert [o.passed for o in result.breakdown] == [True, True, False, False]
        assert [o.score for o in result.breakdown] == [30, 40, 0, 0]

    def test_full_eligibility(self, evaluator):
        """Passing the first three of [40, 30, 20, 10] scores 90%."""
        criteria = [
            make_criterion("q1", weightage=40),
            make_criterion("q2", weightage=30),
            make_criterion("q3", weightage=20),
            make_criterion("q4", weightage=10),
        ]
        result = evaluator.evaluate(criteria, {"q1": "YES", "q2": "YES", "q3": "YES"})

        assert result.total_score == 90
        assert result.tier is EligibilityTier.ELIGIBLE
        assert result.eligible
        assert result.breakdown[3].answer is None

    def test_not_eligible(self, evaluator):
        criteria = [make_criterion("q1", weightage=60), make_criterion("q2", weightage=40)]
        result = evaluator.evaluate(criteria, {"q2": "YES"})

        assert result.percentage == pytest.approx(40.0)
        assert result.tier is EligibilityTier.NOT_ELIGIBLE
        assert not result.eligible

    def test_no_criteria_is_fully_eligible(self, evaluator):
        result = evaluator.evaluate([], {})
        assert result.max_score == 0
        assert result.percentage == 100.0
        assert result.tier is EligibilityTier.ELIGIBLE

    def test_zero_weight_criteria_only(self, evaluator):
        result = evaluator.evaluate([make_criterion("q1", weightage=0)], {"q1": "NO"})
        assert result.percentage == 100.0

    def test_breakdown_preserves_criterion_order(self, evaluator):
        criteria = [make_criterion(f"q{i}") for i in (3, 1, 2)]
        result = evaluator.evaluate(criteria, {})
        assert [o.criterion_id for o in result.breakdown] == ["q3", "q1", "q2"]


class TestTiers:
    @pytest.mark.parametrize(
        ("percentage", "tier"),
        [
            (100.0, EligibilityTier.ELIGIBLE),
            (80.0, EligibilityTier.ELIGIBLE),
            (79.99, EligibilityTier.PARTIALLY_ELIGIBLE),
            (50.0, EligibilityTier.PARTIALLY_ELIGIBLE),
            (49.99, EligibilityTier.NOT_ELIGIBLE),
            (0.0, EligibilityTier.NOT_ELIGIBLE),
        ],
    )
    def test_thresholds(self, percentage, tier):
        assert classify(percentage) is tier

    def test_messages(self):
        assert eligibility_message(EligibilityTier.ELIGIBLE, 90).startswith("Congratulations!")
        assert "70%" in eligibility_message(EligibilityTier.PARTIALLY_ELIGIBLE, 70.0)
        assert eligibility_message(EligibilityTier.NOT_ELIGIBLE, 10).startswith("Unfortunately")


class TestYesNo:
    def test_defaults_to_yes(self, evaluator):
        criterion = make_criterion("q", QuestionType.YES_NO)
        assert evaluator.check(criterion, "YES")
        assert not evaluator.check(criterion, "NO")
        assert not evaluator.check(criterion, None)

    def test_expected_answer_rule(self, evaluator):
        criterion = make_criterion("q", QuestionType.YES_NO, rules={"expectedAnswer": "NO"})
        assert evaluator.check(criterion, "NO")
        assert not evaluator.check(criterion, "YES")

    def test_comparison_is_exact(self, evaluator):
        criterion = make_criterion("q", QuestionType.YES_NO)
        assert not evaluator.check(criterion, "yes")


class TestNumeric:
    @pytest.mark.parametrize(
        ("answer", "passed"),
        [(1, True), (20, True), ("5", True), (" 7.5 ", True), (0, False), (21, False), ("abc", False), (None, False), (True, False), ("nan", False)],
    )
    def test_number_range(self, evaluator, answer, passed):
        criterion = make_criterion("q", QuestionType.NUMBER, rules={"min": 1, "max": 20})
        assert evaluator.check(criterion, answer) is passed

    def test_range_type_with_open_bounds(self, evaluator):
        criterion = make_criterion("q", QuestionType.RANGE, rules={"max": 100000})
        assert evaluator.check(criterion, -5)
        assert not evaluator.check(criterion, 100001)

    def test_parse_number(self):
        assert parse_number("12") == 12.0
        assert parse_number(3) == 3.0
        assert parse_number("inf") is None
        assert parse_number(False) is None


class TestChoice:
    def test_single_choice_valid_options(self, evaluator):
        criterion = make_criterion(
            "q", QuestionType.SINGLE_CHOICE, rules={"validOptions": ["Houseless", "Kutcha house"]}
        )
        assert evaluator.check(criterion, "Houseless")
        assert not evaluator.check(criterion, "Pucca house")

    def test_choice_without_valid_options_passes(self, evaluator):
        criterion = make_criterion("q", QuestionType.SINGLE_CHOICE)
        assert evaluator.check(criterion, "None of the above")
        assert evaluator.check(criterion, None)

    def test_multiple_choice_requires_non_empty_subset(self, evaluator):
        criterion = make_criterion("q", QuestionType.MULTIPLE_CHOICE, rules={"validOptions": ["A", "B"]})
        assert evaluator.check(criterion, ["A"])
        assert evaluator.check(criterion, ["A", "B"])
        assert not evaluator.check(criterion, ["A", "C"])
        assert not evaluator.check(criterion, [])


class TestOtherTypes:
    def test_text_and_date_always_pass(self, evaluator):
        assert evaluator.check(make_criterion("q", QuestionType.TEXT), None)
        assert evaluator.check(make_criterion("q", QuestionType.DATE), "2024-01-01")

    def test_unknown_type_passes_and_is_logged(self, evaluator, caplog):
        criterion = make_criterion("q", "SLIDER")
        assert evaluator.check(criterion, "anything")
        assert "unrecognised question type" in caplog.text

    def test_unknown_type_fails_in_strict_mode(self):
        assert not EligibilityEvaluator(strict=True).check(make_criterion("q", "SLIDER"), "x")

    def test_lowercase_type_is_recognised(self, evaluator):
        criterion = make_criterion("q", "number", rules={"min": 5})
        assert not evaluator.check(criterion, 1)
