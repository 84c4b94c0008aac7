from typing import Dict

from fosdecisions.utils.settings.core import ProviderSettings
from fosdecisions.utils.settings.factory import settings_factory
from fosdecisions.llm.openai_client import OpenAIChatClient


def prefix_openai_model(model: str) -> str:
    """OpenRouter routes by vendor prefix; bare names are OpenAI models"""
    return model if "/" in model else f"openai/{model}"


class OpenRouterChatClient(OpenAIChatClient):
    """
    OpenRouter chat client.

    OpenRouter speaks the OpenAI wire protocol, so this reuses the OpenAI SDK
    with the OpenRouter base URL and the HTTP-Referer / X-Title attribution
    headers from settings.
    """

    provider = "openrouter"
    key_env_hint = "OPENROUTER_API_KEY, OPENROUTER_KEY or NEXT_PUBLIC_OPENROUTER_API_KEY"

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return settings_factory.create_openrouter_settings()

    def normalize_model_name(self, model: str) -> str:
        return prefix_openai_model(model)

    def _token_limit_kwargs(self, max_tokens: int) -> Dict[str, int]:
        return {"max_tokens": max_tokens}
