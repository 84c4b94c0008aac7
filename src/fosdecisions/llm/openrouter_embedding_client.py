from fosdecisions.utils.settings.core import ProviderSettings
from fosdecisions.utils.settings.factory import settings_factory
from fosdecisions.llm.openai_embedding_client import OpenAIEmbeddingClient


class OpenRouterEmbeddingClient(OpenAIEmbeddingClient):
    """
    OpenRouter embedding client over the OpenAI-compatible endpoint.

    Model names are passed through unchanged.
    """

    provider = "openrouter"
    key_env_hint = "OPENROUTER_API_KEY, OPENROUTER_KEY or NEXT_PUBLIC_OPENROUTER_API_KEY"

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return settings_factory.create_openrouter_settings()
