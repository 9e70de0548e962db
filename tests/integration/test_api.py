"""Integration tests for FastAPI endpoints."""

import pytest
from fakes import DEMO_CITIZEN, ScriptedLLM
from fastapi.testclient import TestClient

from suvidha.adapters.inbound.api import deps
from suvidha.adapters.inbound.api.main import app
from suvidha.core.domain import Completion, FunctionCallRequest
from suvidha.core.services.assistant_functions import FunctionRegistry
from suvidha.core.services.conversation import ConversationOrchestrator
from suvidha.core.services.knowledge_retriever import KnowledgeRetriever
from suvidha.core.services.scheme_eligibility import SchemeEligibilityService

pytestmark = pytest.mark.integration

LOGGED_IN = {"X-Citizen-Id": DEMO_CITIZEN}


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def client(knowledge_store, embedder, llm):
    """Test client wired to a seeded temporary store and in-process fakes."""
    retriever = KnowledgeRetriever(knowledge_store, embedder)
    eligibility = SchemeEligibilityService(knowledge_store)
    functions = FunctionRegistry(knowledge_store, retriever, eligibility)
    orchestrator = ConversationOrchestrator(knowledge_store, llm, retriever, functions)

    app.dependency_overrides[deps.get_store] = lambda: knowledge_store
    app.dependency_overrides[deps.get_retriever] = lambda: retriever
    app.dependency_overrides[deps.get_eligibility_service] = lambda: eligibility
    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Tests for the health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["knowledgeEntries"] == 4
        assert "version" in data
        assert "llmProvider" in data


class TestChatEndpoints:
    """Tests for chat turns and history."""

    def test_new_conversation(self, client):
        anonymous = client.post("/api/chat/conversation").json()
        logged_in = client.post("/api/chat/conversation", headers=LOGGED_IN).json()

        assert anonymous["isAnonymous"] is True
        assert logged_in["isAnonymous"] is False
        assert anonymous["conversationId"] != logged_in["conversationId"]

    def test_message_and_history(self, client, llm):
        llm.completions.append(Completion(text="Namaste! How can I help?"))

        response = client.post(
            "/api/chat/message", json={"conversationId": "conv-1", "message": "hello"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["response"] == "Namaste! How can I help?"
        assert data["requiresAction"] is False
        assert data["functionCall"] is None

        history = client.get("/api/chat/history/conv-1").json()
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]
        assert history["messages"][1]["id"] == data["messageId"]

    def test_function_call_round_trip(self, client, llm):
        llm.completions.append(
            Completion(function_call=FunctionCallRequest("get_user_bills", {"isPaid": False}))
        )
        llm.follow_ups.append(Completion(text="You have 2 unpaid bills."))

        data = client.post(
            "/api/chat/message",
            json={"conversationId": "conv-2", "message": "show my unpaid bills"},
            headers=LOGGED_IN,
        ).json()

        assert data["response"] == "You have 2 unpaid bills."
        assert data["functionCall"]["name"] == "get_user_bills"
        assert data["functionCall"]["result"]["totalAmount"] == 1165.0

        history = client.get("/api/chat/history/conv-2", headers=LOGGED_IN).json()
        assert history["messages"][1]["metadata"]["functionCall"]["name"] == "get_user_bills"

    def test_anonymous_bills_request_navigates_to_login(self, client, llm):
        llm.completions.append(Completion(function_call=FunctionCallRequest("get_user_bills", {})))

        data = client.post(
            "/api/chat/message", json={"conversationId": "conv-3", "message": "my bills"}
        ).json()

        assert data["requiresAction"] is True
        assert data["functionCall"]["result"]["page"] == "login"

    @pytest.mark.parametrize("message", ["", "   "])
    def test_empty_message_fails(self, client, message):
        response = client.post("/api/chat/message", json={"conversationId": "conv-4", "message": message})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SUV_VAL_002"

    def test_too_long_message_fails(self, client):
        response = client.post(
            "/api/chat/message", json={"conversationId": "conv-5", "message": "x" * 4001}
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("headers", [{"X-Citizen-Id": "intruder"}, {}])
    def test_history_of_another_citizen_is_denied(self, client, headers):
        client.post(
            "/api/chat/message",
            json={"conversationId": "conv-private", "message": "hello"},
            headers=LOGGED_IN,
        )

        response = client.get("/api/chat/history/conv-private", headers=headers)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Access denied to this conversation"
        assert client.get("/api/chat/history/conv-private", headers=LOGGED_IN).status_code == 200

    def test_unknown_history(self, client):
        response = client.get("/api/chat/history/missing")

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "NotFoundError"


class TestSchemeEndpoints:
    """Tests for eligibility checks and saved answers."""

    def test_check_eligibility(self, client):
        response = client.post(
            "/api/schemes/jal-jeevan-mission/check-eligibility",
            json={"answers": {"jjm-rural": "YES", "jjm-tap": "NO"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 70
        assert data["maxScore"] == 100
        assert data["eligibilityStatus"] == "PARTIALLY_ELIGIBLE"
        assert data["evaluationResults"][0]["questionId"] == "jjm-rural"
        assert data["savedToProfile"] is False

    def test_save_requires_login(self, client):
        response = client.post(
            "/api/schemes/jal-jeevan-mission/check-eligibility",
            json={"answers": {"jjm-rural": "YES"}, "saveToProfile": True},
        )
        assert response.status_code == 401

    def test_saved_answers_prefill_other_scheme(self, client):
        client.post(
            "/api/schemes/jal-jeevan-mission/check-eligibility",
            json={"answers": {"jjm-rural": "YES"}, "saveToProfile": True},
            headers=LOGGED_IN,
        )

        response = client.get("/api/schemes/pmay-gramin/saved-answers", headers=LOGGED_IN)

        assert response.status_code == 200
        assert response.json()["answers"] == {"pmay-rural": "YES"}

    def test_saved_answers_requires_login(self, client):
        assert client.get("/api/schemes/pmay-gramin/saved-answers").status_code == 401

    def test_unknown_scheme(self, client):
        response = client.post("/api/schemes/nope/check-eligibility", json={"answers": {}})
        assert response.status_code == 404


class TestKnowledgeEndpoints:
    def test_search(self, client):
        response = client.get("/api/knowledge/search", params={"query": "electricity bill", "topK": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["totalResults"] == 2
        assert data["results"][0]["title"] == "How to pay my electricity bill"
        assert "relevanceScore" in data["results"][0]

    def test_search_by_category(self, client):
        data = client.get(
            "/api/knowledge/search", params={"query": "water", "category": "scheme"}
        ).json()
        assert [r["title"] for r in data["results"]] == ["Jal Jeevan Mission"]

    def test_invalid_category(self, client):
        response = client.get("/api/knowledge/search", params={"query": "water", "category": "news"})
        assert response.status_code == 400


class TestAPIDocumentation:
    def test_openapi_schema(self, client):
        response = client.get("/openapi.json")

        assert response.status_code == 200
        schema = response.json()
        assert schema["info"]["title"] == "Suvidha API"
        assert "/api/chat/message" in schema["paths"]
        assert "/api/schemes/{scheme_id}/check-eligibility" in schema["paths"]
