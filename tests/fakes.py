"""Test doubles and builders shared by the unit and integration suites."""

from pathlib import Path
from typing import Any

from suvidha.core.domain import (
    ChatMessage,
    Completion,
    EligibilityCriterion,
    FunctionCallRequest,
    QuestionType,
)
from suvidha.core.domain.exceptions import EmbeddingError, EmbeddingRequestFailedError
from suvidha.core.ports.embedding_port import EmbeddingPort
from suvidha.core.ports.llm_port import LLMPort

SEED_FILE = Path(__file__).parent.parent / "seeds" / "suvidha_seed.json"

DEMO_CITIZEN = "citizen-demo"

# Keyword axes for the fake embedder: a text's vector counts these words.
KEYWORD_AXES = ("bill", "water", "scheme", "electricity")


class KeywordEmbedder(EmbeddingPort):
    """Deterministic embedder: one dimension per keyword, plus a bias term."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingRequestFailedError("boom")
        lowered = text.lower()
        return [float(lowered.count(word)) for word in KEYWORD_AXES] + [0.1]

    def embed_documents(self, texts: list[str]) -> list[list[float] | None]:
        vectors: list[list[float] | None] = []
        for text in texts:
            try:
                vectors.append(self.embed(text))
            except EmbeddingError:
                vectors.append(None)
        return vectors


class ScriptedLLM(LLMPort):
    """LLM double that replays queued completions and records its calls."""

    name = "scripted"

    def __init__(
        self,
        completions: list[Completion | Exception] | None = None,
        follow_ups: list[Completion | Exception] | None = None,
        supports_function_calling: bool = True,
    ):
        self.completions = list(completions or [])
        self.follow_ups = list(follow_ups or [])
        self.supports_function_calling = supports_function_calling
        self.complete_calls: list[dict[str, Any]] = []
        self.follow_up_calls: list[dict[str, Any]] = []

    @staticmethod
    def _next(queue: list[Completion | Exception]) -> Completion:
        item = queue.pop(0) if queue else Completion(text="ok")
        if isinstance(item, Exception):
            raise item
        return item

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None = None,
    ) -> Completion:
        self.complete_calls.append(
            {"system_prompt": system_prompt, "messages": list(messages), "functions": functions}
        )
        return self._next(self.completions)

    def continue_with_function_result(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        functions: list[dict[str, Any]] | None,
        call: FunctionCallRequest,
        result: dict[str, Any],
    ) -> Completion:
        self.follow_up_calls.append({"call": call, "result": result})
        return self._next(self.follow_ups)


def make_criterion(
    criterion_id: str,
    question_type: QuestionType | str = QuestionType.YES_NO,
    weightage: int = 10,
    rules: dict[str, Any] | None = None,
    question: str | None = None,
    options: list[str] | None = None,
) -> EligibilityCriterion:
    return EligibilityCriterion(
        criterion_id=criterion_id,
        scheme_id="scheme-test",
        question_text=question or f"Question {criterion_id}?",
        question_type=question_type,
        weightage=weightage,
        options=options or [],
        validation_rules=rules or {},
    )


