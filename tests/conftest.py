"""Shared fixtures and fakes for the pipeline tests."""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from loguru import logger

from fosdecisions.llm.base import BaseChatClient, BaseEmbeddingClient
from fosdecisions.models import DecisionInsights, EnrichedDecision, ParsedDecision
from fosdecisions.utils.settings.core import (
    OPENAI_API_KEY_ENV_NAMES,
    OPENROUTER_API_KEY_ENV_NAMES,
)

ENV_NAMES = (
    *OPENAI_API_KEY_ENV_NAMES,
    *OPENROUTER_API_KEY_ENV_NAMES,
    "OPENAI_MODEL",
    "OPENROUTER_MODEL",
    "OPENAI_BASE_URL",
    "OPENROUTER_BASE_URL",
    "NEXT_PUBLIC_APP_URL",
    "OPENROUTER_APP_URL",
    "DATABASE_URL",
    "DATABASE_SSLMODE",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider and database variables so tests control them."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during a test."""
    messages: List[str] = []
    handler_id = logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)


class FakeChatClient(BaseChatClient):
    """Chat client returning canned replies, or raising, without network calls."""

    provider = "fake"

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        super().__init__(api_key="test")
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def _get_model(self, model: Optional[str] = None) -> str:
        return model or "fake-model"

    def chat_completion(self, messages, model=None, temperature=None, max_tokens=None, **kwargs):
        self.calls.append({
            "messages": self._normalize_messages(messages),
            "model": self._get_model(model),
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeEmbeddingClient(BaseEmbeddingClient):
    """Embedding client returning a fixed vector, or raising."""

    provider = "fake"

    def __init__(self, vector: Optional[List[float]] = None, error: Optional[Exception] = None):
        super().__init__(api_key="test")
        self.vector = vector
        self.error = error
        self.inputs: List[str] = []

    def _get_embedding_model(self, model: Optional[str] = None) -> str:
        return model or "fake-embedding"

    def create_embeddings(self, texts, model=None, **kwargs):
        self.inputs.append(texts)
        if self.error:
            raise self.error
        data = [SimpleNamespace(embedding=self.vector)] if self.vector is not None else []
        return SimpleNamespace(data=data)


def make_parsed(**overrides) -> ParsedDecision:
    fields = {
        "decision_reference": "DRN1234567",
        "decision_date": "12 March 2024",
        "business_name": "Acme Bank plc",
        "product_sector": "Banking and credit",
        "outcome": "upheld",
        "pdf_url": "https://www.example.test/decisions/DRN1234567.pdf",
        "source_url": "https://www.example.test/decisions/DRN1234567.pdf",
        "pdf_path": "fos/pdfs/drn1234567-abcdef12.pdf",
        "pdf_sha256": "0" * 64,
        "full_text": "Full decision text",
        "sections": {
            "complaint": "Mr A complains about his loan.",
            "ombudsman_reasoning": "I think the bank acted unfairly.",
            "final_decision": "I uphold this complaint.",
        },
    }
    fields.update(overrides)
    return ParsedDecision(**fields)


def make_enriched(**overrides) -> EnrichedDecision:
    ai = overrides.pop("ai", DecisionInsights(
        precedents_cited=["DISP 3.6.4R"],
        root_cause_tags=["affordability"],
        decision_logic="The lender did not check affordability.",
        vulnerability_flags=[],
        ombudsman_name="Jane Smith",
        outcome="upheld",
        product_sector="Consumer credit",
    ))
    return EnrichedDecision.from_parsed(make_parsed(**overrides), ai)
