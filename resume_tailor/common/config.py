"""
Configuration loader for the tailoring pipeline.

Loads provider settings from environment variables (.env file) and exposes
the immutable AgentConfig that is supplied once per pipeline run.
"""

import os
from dataclasses import dataclass
from typing import Literal
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

ProviderType = Literal["openai-compatible", "gemini"]

PROVIDER_TYPES = ("openai-compatible", "gemini")


@dataclass(frozen=True)
class AgentConfig:
    """
    Provider settings for every agent in a pipeline run.

    Attributes:
        api_url: Base URL of the provider (e.g. http://localhost:1234/v1)
        api_key: API key; may be empty for local OpenAI-compatible servers
        model: Model identifier passed to the provider
        provider_type: "openai-compatible" or "gemini"
    """

    api_url: str
    api_key: str
    model: str
    provider_type: ProviderType = "openai-compatible"

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Build an AgentConfig from RESUME_TAILOR_* environment variables."""
        return cls(
            api_url=os.getenv("RESUME_TAILOR_API_URL", Settings.DEFAULT_API_URL),
            api_key=os.getenv("RESUME_TAILOR_API_KEY", ""),
            model=os.getenv("RESUME_TAILOR_MODEL", Settings.DEFAULT_MODEL),
            provider_type=os.getenv("RESUME_TAILOR_PROVIDER", "openai-compatible"),  # type: ignore[arg-type]
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If the provider type is unknown or the model is empty
        """
        errors = []
        if self.provider_type not in PROVIDER_TYPES:
            errors.append(f"provider_type must be one of {PROVIDER_TYPES}, got {self.provider_type!r}")
        if not self.model:
            errors.append("model is required")
        if self.provider_type == "openai-compatible" and not self.api_url:
            errors.append("api_url is required for openai-compatible providers")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def summary(self) -> str:
        """Get a summary safe for logging (never includes the key)."""
        key_state = "set" if self.api_key else "empty"
        return (
            f"provider={self.provider_type} model={self.model} "
            f"api_url={self.api_url or '(default)'} api_key={key_state}"
        )


class Settings:
    """
    Global pipeline settings.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Provider defaults =====
    DEFAULT_API_URL: str = os.getenv("RESUME_TAILOR_DEFAULT_API_URL", "http://localhost:1234/v1")
    DEFAULT_MODEL: str = os.getenv("RESUME_TAILOR_DEFAULT_MODEL", "gpt-4o-mini")

    # Each provider call is independent; no retry at the adapter layer
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("RESUME_TAILOR_REQUEST_TIMEOUT", "120"))

    # ===== Sampling =====
    # Creative stages (writers) vs. analytical stages (reviewers, JSON contracts)
    WRITER_TEMPERATURE: float = float(os.getenv("RESUME_TAILOR_WRITER_TEMPERATURE", "0.7"))
    ANALYTICAL_TEMPERATURE: float = float(os.getenv("RESUME_TAILOR_ANALYTICAL_TEMPERATURE", "0.2"))

    # ===== Logging =====
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")
