from typing import List, Optional, Union
from loguru import logger
from openai import OpenAI
from openai import OpenAIError

from fosdecisions.utils.settings.core import ProviderSettings
from fosdecisions.utils.settings.factory import settings_factory
from fosdecisions.llm.base import BaseEmbeddingClient

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-large"


class OpenAIEmbeddingClient(BaseEmbeddingClient):
    """Embeddings for the vectorize stage via the OpenAI SDK"""

    provider = "openai"
    key_env_hint = "OPENAI_API_KEY or OPENAI_KEY"

    def __init__(
        self,
        api_key: Optional[str] = None,
        embedding_model: Optional[str] = None,
        settings: Optional[ProviderSettings] = None
    ):
        """
        Args:
            api_key: Overrides the key from settings
            embedding_model: Default model (text-embedding-3-large when omitted)
            settings: Provider settings; read from the environment when omitted

        Raises:
            ValueError: If no API key is available
        """
        settings = settings or self._default_settings()
        super().__init__(api_key=api_key or settings.api_key)
        self.default_embedding_model = embedding_model or DEFAULT_EMBEDDING_MODEL

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
            logger.error(f"Failed to initialize {self.provider} embedding client: {e}")
            raise

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return settings_factory.create_openai_settings()

    def _get_embedding_model(self, model: Optional[str] = None) -> str:
        return self.normalize_model_name(model or self.default_embedding_model)

    def create_embeddings(
        self,
        texts: Union[str, List[str]],
        model: Optional[str] = None,
        **kwargs
    ):
        """Native CreateEmbeddingResponse for one text or a batch"""
        try:
            return self._sync_client.embeddings.create(
                model=self._get_embedding_model(model),
                input=[texts] if isinstance(texts, str) else texts,
                **kwargs
            )
        except OpenAIError as e:
            logger.error(f"{self.provider} API error in embedding creation: {e}")
            raise
