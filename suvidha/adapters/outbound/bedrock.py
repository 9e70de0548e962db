"""Helpers shared by the Bedrock runtime adapters (bearer-token HTTP invoke)."""

from typing import Any


def invoke_url(endpoint: str, model_id: str) -> str:
    """Model invoke URL; an endpoint that already names a model is used as-is."""
    base = endpoint.rstrip("/")
    if "/model/" in base:
        return base
    return f"{base}/model/{model_id}/invoke"


def bedrock_headers(token: str, model_id: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Authorization": f"Bearer {token}",
        "x-amz-bedrock-model-id": model_id,
    }


def response_excerpt(body: Any, limit: int = 200) -> str:
    """Short, log-safe rendering of a provider response body."""
    text = body if isinstance(body, str) else repr(body)
    return text if len(text) <= limit else f"{text[:limit]}..."
