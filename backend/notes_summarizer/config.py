from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings.

    Values may be provided via environment variables prefixed with
    ``SUMMARIZER_``. Provider and mail credentials are also accepted under
    their conventional unprefixed names (``GROQ_API_KEY``, ``EMAIL_HOST``...).
    """

    # HTTP
    cors_allow_origins: str = Field("http://localhost:3000", description="Comma-separated origins")

    # Storage
    db_path: str = Field("summaries.db", description="SQLite file, relative to the backend dir")

    # Summarization provider (Groq, OpenAI-compatible API)
    groq_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("groq_api_key", "SUMMARIZER_GROQ_API_KEY", "GROQ_API_KEY"),
    )
    groq_model: str = Field("mixtral-8x7b-32768", description="Chat model id")
    groq_api_base: str = "https://api.groq.com/openai/v1"
    groq_temperature: float = Field(0.3, ge=0.0, le=2.0)
    groq_max_tokens: int = Field(2048, ge=1)
    groq_timeout_s: int = Field(60, ge=1)

    # Mail relay
    email_host: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("email_host", "SUMMARIZER_EMAIL_HOST", "EMAIL_HOST"),
    )
    email_port: int = Field(
        default=587,
        validation_alias=AliasChoices("email_port", "SUMMARIZER_EMAIL_PORT", "EMAIL_PORT"),
    )
    email_user: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("email_user", "SUMMARIZER_EMAIL_USER", "EMAIL_USER"),
    )
    email_pass: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("email_pass", "SUMMARIZER_EMAIL_PASS", "EMAIL_PASS"),
    )
    email_from: Optional[str] = Field(None, description="Sender address; defaults to email_user")
    email_use_tls: bool = True
    email_timeout_s: int = Field(30, ge=1)

    class Config:
        env_prefix = "SUMMARIZER_"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
