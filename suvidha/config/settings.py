"""Configuration management for the Suvidha assistant core."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets pasted into environment files or injected by the hosting platform
    may carry a BOM that breaks the ``Authorization`` header.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AWS Bedrock (embeddings + Claude/Titan completions)
    aws_bearer_token_bedrock: str = ""
    aws_bedrock_endpoint: str = ""
    aws_region: str = "us-east-1"

    # Google AI API (Gemini provider strategy)
    google_api_key: str = ""

    @field_validator(
        "aws_bearer_token_bedrock", "aws_bedrock_endpoint", "google_api_key", mode="after"
    )
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Embedding settings
    embedding_model: str = "amazon.titan-embed-text-v1"
    embedding_dimension: int = 1536
    embedding_max_chars: int = 8000
    embedding_max_retries: int = 3
    embedding_backoff_seconds: float = 0.5
    embedding_requests_per_minute: int = 300
    request_timeout_seconds: float = 60.0

    # Model settings
    llm_provider: str = "bedrock-claude"
    bedrock_chat_model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"
    bedrock_text_model_id: str = "amazon.titan-text-express-v1"
    gemini_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2000
    llm_requests_per_minute: int = 60

    # RAG / chat settings
    top_k_results: int = 5
    chat_context_window: int = 20
    use_knowledge_base: bool = True

    # Eligibility
    eligibility_strict_question_types: bool = False

    # Storage
    data_dir: Path = Path("./data")
    database_path: Path = Path("./data/suvidha.db")

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    # API
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    @property
    def has_bedrock_credentials(self) -> bool:
        """Whether both the bearer token and the endpoint are configured."""
        return bool(self.aws_bearer_token_bedrock and self.aws_bedrock_endpoint)

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
