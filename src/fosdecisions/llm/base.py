"""
Provider-neutral client interfaces.

Stages only talk to these ABCs: enrichment needs the text of one chat
completion, vectorization needs one embedding vector. Concrete clients
return the native SDK response objects from the abstract methods; the
convenience methods here unwrap them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel


class ChatMessage(BaseModel):
    """One chat turn; plain dicts with the same keys are accepted too"""
    role: str  # system | user | assistant
    content: str
    name: Optional[str] = None


Message = Union[ChatMessage, Dict[str, str]]


class BaseClient(ABC):
    """Holds the API key and the provider's naming rules"""

    provider: str = "base"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    def _normalize_messages(self, messages: Sequence[Message]) -> List[Dict[str, str]]:
        """Messages as the dicts the wire protocol expects"""
        payload = []
        for message in messages:
            if isinstance(message, ChatMessage):
                payload.append(message.model_dump(exclude_none=True))
            elif isinstance(message, dict):
                payload.append(message)
            else:
                raise ValueError(f"Unsupported message: {message!r}")
        return payload

    def normalize_model_name(self, model: str) -> str:
        """Vendor-specific model naming; identity unless a provider overrides it"""
        return model


class BaseChatClient(BaseClient):
    """Chat completion client"""

    @abstractmethod
    def chat_completion(
        self,
        messages: Sequence[Message],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> Any:
        """Run one completion and return the SDK response"""

    @abstractmethod
    def _get_model(self, model: Optional[str] = None) -> str:
        """Resolve the model name sent to the provider"""

    def chat(
        self,
        messages: Sequence[Message],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Text of the first choice; '' when the provider returned none"""
        response = self.chat_completion(
            messages, model=model, temperature=temperature, max_tokens=max_tokens
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class BaseEmbeddingClient(BaseClient):
    """Embedding client"""

    @abstractmethod
    def create_embeddings(
        self,
        texts: Union[str, List[str]],
        model: Optional[str] = None,
        **kwargs
    ) -> Any:
        """Embed one or more texts and return the SDK response"""

    @abstractmethod
    def _get_embedding_model(self, model: Optional[str] = None) -> str:
        """Resolve the embedding model name sent to the provider"""

    def embed_text(self, text: str, model: Optional[str] = None) -> Optional[List[float]]:
        """Vector for a single text; None when the response carries none"""
        response = self.create_embeddings(text, model=model)
        if not response.data:
            return None
        return list(response.data[0].embedding)
