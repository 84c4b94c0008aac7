from fosdecisions.llm.base import (
    ChatMessage,
    BaseChatClient,
    BaseEmbeddingClient,
)

from fosdecisions.llm.openai_client import OpenAIChatClient, DEFAULT_CHAT_MODEL
from fosdecisions.llm.openai_embedding_client import OpenAIEmbeddingClient, DEFAULT_EMBEDDING_MODEL
from fosdecisions.llm.openrouter_client import OpenRouterChatClient, prefix_openai_model
from fosdecisions.llm.openrouter_embedding_client import OpenRouterEmbeddingClient
from fosdecisions.llm.factory import LLMClientFactory, ProviderType

__all__ = [
    "ChatMessage",
    "BaseChatClient",
    "BaseEmbeddingClient",
    "OpenAIChatClient",
    "OpenAIEmbeddingClient",
    "OpenRouterChatClient",
    "OpenRouterEmbeddingClient",
    "LLMClientFactory",
    "ProviderType",
    "DEFAULT_CHAT_MODEL",
    "DEFAULT_EMBEDDING_MODEL",
    "prefix_openai_model",
]
