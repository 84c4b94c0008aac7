from typing import Optional, Literal
from loguru import logger

from fosdecisions.utils.settings.factory import settings_factory
from fosdecisions.llm.base import BaseChatClient, BaseEmbeddingClient
from fosdecisions.llm.openai_client import OpenAIChatClient, DEFAULT_CHAT_MODEL
from fosdecisions.llm.openai_embedding_client import OpenAIEmbeddingClient, DEFAULT_EMBEDDING_MODEL
from fosdecisions.llm.openrouter_client import OpenRouterChatClient
from fosdecisions.llm.openrouter_embedding_client import OpenRouterEmbeddingClient

ProviderType = Literal["openai", "openrouter"]
PROVIDERS = ("openai", "openrouter")


class LLMClientFactory:
    """Factory for creating chat and embedding clients per provider"""

    @staticmethod
    def _validate_provider(provider: str) -> ProviderType:
        normalized = (provider or "").strip().lower()
        if normalized not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider}. Use 'openai' or 'openrouter'")
        return normalized  # type: ignore[return-value]

    @staticmethod
    def default_provider() -> ProviderType:
        """openai when an OpenAI key is configured, otherwise openrouter"""
        if settings_factory.create_openai_settings().api_key:
            return "openai"
        return "openrouter"

    @staticmethod
    def default_chat_model(provider: ProviderType) -> str:
        """Model from OPENAI_MODEL / OPENROUTER_MODEL, else gpt-4o-mini"""
        if provider == "openai":
            settings = settings_factory.create_openai_settings()
        else:
            settings = settings_factory.create_openrouter_settings()
        return settings.model or DEFAULT_CHAT_MODEL

    @staticmethod
    def default_embedding_model() -> str:
        return DEFAULT_EMBEDDING_MODEL

    @classmethod
    def create_chat_client(cls, provider: str, model: Optional[str] = None) -> BaseChatClient:
        """
        Create a chat client for the given provider.

        Raises:
            ValueError: Unknown provider or missing API key
        """
        provider = cls._validate_provider(provider)
        logger.info(f"Creating {provider} chat client")
        if provider == "openai":
            return OpenAIChatClient(model=model)
        return OpenRouterChatClient(model=model)

    @classmethod
    def create_embedding_client(cls, provider: str, model: Optional[str] = None) -> BaseEmbeddingClient:
        """
        Create an embedding client for the given provider.

        Raises:
            ValueError: Unknown provider or missing API key
        """
        provider = cls._validate_provider(provider)
        logger.info(f"Creating {provider} embedding client")
        if provider == "openai":
            return OpenAIEmbeddingClient(embedding_model=model)
        return OpenRouterEmbeddingClient(embedding_model=model)
