"""
Model adapters: one uniform interface over the supported LLM backends.

Two implementations are provided:
- OpenAICompatibleAdapter: any /chat/completions server (OpenAI, LM Studio,
  Ollama, vLLM, OpenRouter) through langchain_openai.ChatOpenAI
- GeminiAdapter: Google Gemini through langchain_google_genai

The provider is chosen once per run by create_model_adapter() and the
adapter is injected into every Agent. Adapters never retry; every provider
failure is raised as TransportError.

Usage:
    adapter = create_model_adapter(AgentConfig.from_env())
    text = await adapter.complete([Message("system", "..."), Message("user", "...")])
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from resume_tailor.common.config import AgentConfig, Settings
from resume_tailor.common.errors import TransportError
from resume_tailor.common.types import Message, StreamCallback, StreamEvent

logger = logging.getLogger(__name__)

GEMINI_DEFAULT_HOST = "generativelanguage.googleapis.com"

# Local OpenAI-compatible servers reject requests without an Authorization header
PLACEHOLDER_API_KEY = "not-needed"


def to_langchain_messages(messages: List[Message]) -> List[BaseMessage]:
    """Convert Message objects into langchain message objects."""
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted


def _content_text(content: Any) -> str:
    """
    Flatten a langchain message content payload into text.

    Gemini may return a list of content parts instead of a string.

    Raises:
        TransportError: If the envelope has no recognizable text content
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    raise TransportError(f"Malformed provider response content: {type(content).__name__}")


class ModelAdapter(ABC):
    """
    Uniform request/response/streaming contract over one LLM backend.

    Subclasses only build the provider client; request handling, streaming
    and error translation are shared.
    """

    provider: str = ""

    def __init__(self, config: AgentConfig, timeout: Optional[float] = None):
        self.config = config
        self.timeout = timeout if timeout is not None else Settings.REQUEST_TIMEOUT_SECONDS
        self._clients: Dict[float, BaseChatModel] = {}

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    def _build_client(self, temperature: float) -> BaseChatModel:
        """Create the provider chat model for a sampling temperature."""

    def _client(self, temperature: float) -> BaseChatModel:
        if temperature not in self._clients:
            self._clients[temperature] = self._build_client(temperature)
        return self._clients[temperature]

    def _transport_error(self, error: Exception) -> TransportError:
        return TransportError(
            f"{self.provider} request failed ({type(error).__name__}): {error}",
            provider=self.provider,
            model=self.model,
        )

    async def complete(self, messages: List[Message], temperature: float = 0.7) -> str:
        """
        Send one blocking request and return the response text.

        Raises:
            TransportError: On any provider, network, or timeout failure
        """
        try:
            client = self._client(temperature)
            response = await client.ainvoke(to_langchain_messages(messages))
        except TransportError:
            raise
        except Exception as e:
            raise self._transport_error(e) from e

        return _content_text(getattr(response, "content", None))

    async def stream(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        on_event: Optional[StreamCallback] = None,
    ) -> str:
        """
        Send one streaming request.

        Fires on_event once per non-empty chunk and once with done=True at
        completion. Returns the full concatenated text.

        Raises:
            TransportError: On any provider, network, or timeout failure
        """
        chunks: List[str] = []
        try:
            client = self._client(temperature)
            async for chunk in client.astream(to_langchain_messages(messages)):
                text = _content_text(getattr(chunk, "content", None))
                if not text:
                    continue
                chunks.append(text)
                if on_event:
                    on_event(StreamEvent(content=text, done=False))
        except TransportError:
            raise
        except Exception as e:
            raise self._transport_error(e) from e

        if on_event:
            on_event(StreamEvent(content=None, done=True))
        return "".join(chunks)


class OpenAICompatibleAdapter(ModelAdapter):
    """Adapter for OpenAI-compatible /chat/completions servers."""

    provider = "openai-compatible"

    def _build_client(self, temperature: float) -> BaseChatModel:
        logger.debug(f"Creating ChatOpenAI client: model={self.model}, base_url={self.config.api_url}")
        return ChatOpenAI(
            model=self.model,
            temperature=temperature,
            api_key=self.config.api_key or PLACEHOLDER_API_KEY,
            base_url=self.config.api_url or None,
            timeout=self.timeout,
            max_retries=0,
        )


class GeminiAdapter(ModelAdapter):
    """Adapter for Google Gemini generate-content endpoints."""

    provider = "gemini"

    def _custom_endpoint(self) -> Optional[str]:
        """Return the custom API endpoint, or None for Google's default host."""
        api_url = (self.config.api_url or "").strip()
        if not api_url or GEMINI_DEFAULT_HOST in api_url:
            return None
        return api_url.rstrip("/")

    def _build_client(self, temperature: float) -> BaseChatModel:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "temperature": temperature,
            "google_api_key": self.config.api_key,
            "timeout": self.timeout,
            "max_retries": 0,
        }
        endpoint = self._custom_endpoint()
        if endpoint:
            kwargs["client_options"] = {"api_endpoint": endpoint}

        logger.debug(f"Creating ChatGoogleGenerativeAI client: model={self.model}, endpoint={endpoint or 'default'}")
        return ChatGoogleGenerativeAI(**kwargs)


_ADAPTERS: Dict[str, Type[ModelAdapter]] = {
    OpenAICompatibleAdapter.provider: OpenAICompatibleAdapter,
    GeminiAdapter.provider: GeminiAdapter,
}


def create_model_adapter(config: AgentConfig, timeout: Optional[float] = None) -> ModelAdapter:
    """
    Select and build the adapter for the configured provider.

    Called once per pipeline run.

    Raises:
        ValueError: If the configuration is invalid
    """
    config.validate()
    adapter_cls = _ADAPTERS[config.provider_type]
    logger.info(f"Using {adapter_cls.__name__}: {config.summary()}")
    return adapter_cls(config, timeout=timeout)
