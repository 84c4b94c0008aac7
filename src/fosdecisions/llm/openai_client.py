"""OpenAI chat client used by the enrich stage."""

from typing import Dict, Optional, Sequence
from loguru import logger
from openai import OpenAI
from openai import OpenAIError

from fosdecisions.utils.settings.core import ProviderSettings
from fosdecisions.utils.settings.factory import settings_factory
from fosdecisions.llm.base import BaseChatClient, Message

DEFAULT_CHAT_MODEL = "gpt-4o-mini"


class OpenAIChatClient(BaseChatClient):
    """Chat completions against api.openai.com (or a compatible base URL)"""

    provider = "openai"
    key_env_hint = "OPENAI_API_KEY or OPENAI_KEY"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[ProviderSettings] = None
    ):
        """
        Args:
            api_key: Overrides the key from settings
            model: Default model; falls back to the settings model, then gpt-4o-mini
            settings: Provider settings; read from the environment when omitted

        Raises:
            ValueError: If no API key is available
        """
        settings = settings or self._default_settings()

        super().__init__(api_key=api_key or settings.api_key)
        self.default_model = model or settings.model or DEFAULT_CHAT_MODEL
        self.default_temperature = 0.2
        self.default_max_tokens = 700

        if not self.api_key:
            raise ValueError(
                f"{self.provider} API key is required. Set {self.key_env_hint} in environment or pass api_key parameter."
            )

        client_config = {"api_key": self.api_key}
        if settings.base_url:
            client_config["base_url"] = settings.base_url
        if settings.default_headers:
            client_config["default_headers"] = settings.default_headers

        try:
            self._sync_client = OpenAI(**client_config)
        except Exception as e:
            logger.error(f"Failed to initialize {self.provider} client: {e}")
            raise

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return settings_factory.create_openai_settings()

    def _get_model(self, model: Optional[str] = None) -> str:
        return self.normalize_model_name(model or self.default_model)

    def _get_temperature(self, temperature: Optional[float] = None) -> float:
        return temperature if temperature is not None else self.default_temperature

    def _get_max_tokens(self, max_tokens: Optional[int] = None) -> int:
        return max_tokens if max_tokens is not None else self.default_max_tokens

    def _token_limit_kwargs(self, max_tokens: int) -> Dict[str, int]:
        # current OpenAI models reject max_tokens
        return {"max_completion_tokens": max_tokens}

    def chat_completion(
        self,
        messages: Sequence[Message],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ):
        """
        Run one chat completion.

        Returns:
            Native OpenAI ChatCompletion object

        Raises:
            OpenAIError: Logged and re-raised for the caller to handle
        """
        try:
            return self._sync_client.chat.completions.create(
                model=self._get_model(model),
                messages=self._normalize_messages(messages),
                temperature=self._get_temperature(temperature),
                **self._token_limit_kwargs(self._get_max_tokens(max_tokens)),
                **kwargs
            )
        except OpenAIError as e:
            logger.error(f"{self.provider} API error: {e}")
            raise
