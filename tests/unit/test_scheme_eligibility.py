"""Unit tests for SchemeEligibilityService (check, save, pre-fill)."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from fakes import DEMO_CITIZEN

from suvidha.core.domain import Citizen, CitizenProfile, EligibilityTier, SavedAnswer
from suvidha.core.domain.exceptions import NotFoundError, UnauthorizedError
from suvidha.core.services.scheme_eligibility import SchemeEligibilityService

pytestmark = pytest.mark.unit

JJM_ANSWERS = {
    "jjm-rural": "YES",
    "jjm-tap": "NO",
    "jjm-income": "Below ₹1 lakh",
    "jjm-members": 4,
}


@pytest.fixture
def service(store):
    return SchemeEligibilityService(store)


class TestCheck:
    def test_fully_eligible(self, service):
        check = service.check("jal-jeevan-mission", JJM_ANSWERS)

        assert check.result.total_score == 100
        assert check.result.tier is EligibilityTier.ELIGIBLE
        assert check.message.startswith("Congratulations!")
        assert not check.saved_to_profile

    def test_existing_tap_connection_loses_weight(self, service):
        check = service.check("jal-jeevan-mission", {**JJM_ANSWERS, "jjm-tap": "YES"})

        assert check.result.total_score == 60
        assert check.result.tier is EligibilityTier.PARTIALLY_ELIGIBLE

    def test_to_dict_shape(self, service):
        payload = service.check("pm-ujjwala-yojana", {"pmuy-bpl": "YES"}).to_dict()

        assert set(payload) == {
            "eligible",
            "eligibilityStatus",
            "score",
            "maxScore",
            "percentage",
            "evaluationResults",
            "message",
            "savedToProfile",
        }
        assert payload["score"] == 55
        assert payload["eligibilityStatus"] == "PARTIALLY_ELIGIBLE"
        assert payload["evaluationResults"][0] == {
            "questionId": "pmuy-bpl",
            "question": "Do you belong to a Below Poverty Line (BPL) family?",
            "answer": "YES",
            "passed": True,
            "score": 40,
        }

    def test_unknown_scheme(self, service):
        with pytest.raises(NotFoundError):
            service.check("missing-scheme", {})

    def test_save_requires_citizen(self, service):
        with pytest.raises(UnauthorizedError):
            service.check("jal-jeevan-mission", JJM_ANSWERS, save_to_profile=True)


class TestSavedAnswers:
    def test_save_keys_by_normalized_question(self, service, store):
        check = service.check(
            "jal-jeevan-mission",
            {"jjm-rural": "YES", "jjm-members": 4, "jjm-income": ""},
            citizen_id=DEMO_CITIZEN,
            save_to_profile=True,
        )

        assert check.saved_to_profile
        saved = store.get_profile(DEMO_CITIZEN).saved_answers
        assert set(saved) == {"is your household located in a rural area?", "number of family members"}
        assert saved["number of family members"].question_type == "NUMBER"

    def test_prefill_across_schemes(self, service):
        service.check("jal-jeevan-mission", JJM_ANSWERS, citizen_id=DEMO_CITIZEN, save_to_profile=True)

        # PMAY-G asks the same rural question; the income questions differ in wording
        assert service.prefill("pmay-gramin", DEMO_CITIZEN) == {"pmay-rural": "YES"}

    def test_prefill_requires_consent(self, service, store):
        """Answers on a profile that never opted in are not reused."""
        store.add_citizen(
            Citizen(
                citizen_id="citizen-private",
                full_name="Ravi Kumar",
                mobile_number="9000000000",
                profile=CitizenProfile(
                    citizen_id="citizen-private",
                    consent_to_save_answers=False,
                    saved_answers={
                        "is your household located in a rural area?": SavedAnswer(
                            "YES", "YES_NO", datetime.now(UTC)
                        )
                    },
                ),
            )
        )

        assert service.prefill("pmay-gramin", "citizen-private") == {}

    def test_saving_answers_opts_new_citizen_in(self, service, store):
        store.add_citizen(Citizen(citizen_id="c-new", full_name="Meena Das", mobile_number="9111111111"))

        service.check("jal-jeevan-mission", JJM_ANSWERS, citizen_id="c-new", save_to_profile=True)

        assert store.get_profile("c-new").consent_to_save_answers
        assert service.prefill("pmay-gramin", "c-new") == {"pmay-rural": "YES"}

    def test_prefill_skips_type_mismatch(self, service, store):
        service.save_answers(DEMO_CITIZEN, store.get_scheme("jal-jeevan-mission"), {"jjm-rural": "YES"})
        scheme = store.get_scheme("pmay-gramin")
        next(c for c in scheme.criteria if c.criterion_id == "pmay-rural").question_type = "TEXT"

        wrapped = MagicMock(wraps=store)
        wrapped.get_scheme.return_value = scheme

        assert SchemeEligibilityService(wrapped).prefill("pmay-gramin", DEMO_CITIZEN) == {}

    def test_prefill_unknown_citizen(self, service):
        assert service.prefill("pmay-gramin", "nobody") == {}
