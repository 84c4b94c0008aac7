"""Vectorize stage: embed each enriched decision's reasoning text."""

import time
from typing import Callable, List, Optional

from loguru import logger
from neopipe import Result, Ok, Err

from fosdecisions.core.enums import SectionKey
from fosdecisions.core.text_extractor import slugify
from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.llm.base import BaseEmbeddingClient
from fosdecisions.llm.factory import LLMClientFactory
from fosdecisions.models.decision import EnrichedDecision, VectorizedDecision
from fosdecisions.models.options import PipelineOptions
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport

EMBEDDING_CHAR_LIMIT = 12000


def embedding_text(decision: EnrichedDecision) -> str:
    """Reasoning, else the final decision, else the full text; capped at 12,000 characters."""
    text = (
        decision.sections.get(SectionKey.OMBUDSMAN_REASONING)
        or decision.sections.get(SectionKey.FINAL_DECISION)
        or decision.full_text
        or ""
    )
    return text[:EMBEDDING_CHAR_LIMIT]


class VectorizeService(ServiceFactoryABC["VectorizeService"]):
    """Attaches embeddings to enriched decisions."""

    def __init__(
        self,
        client: BaseEmbeddingClient,
        enriched_store: JsonDirectoryStore,
        vectors_store: JsonDirectoryStore,
        options: PipelineOptions,
        model: str,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.enriched_store = enriched_store
        self.vectors_store = vectors_store
        self.options = options
        self.model = model
        self.sleep = sleep

    @classmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> "VectorizeService":
        options = options or PipelineOptions()
        layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        provider = options.embedding_provider or LLMClientFactory.default_provider()
        model = options.embedding_model or LLMClientFactory.default_embedding_model()
        return cls(
            client=LLMClientFactory.create_embedding_client(provider, model=model),
            enriched_store=JsonDirectoryStore(layout.enriched_dir),
            vectors_store=JsonDirectoryStore(layout.vectors_dir),
            options=options,
            model=model,
        )

    def create_embedding(self, text: str) -> Result[List[float], str]:
        try:
            embedding = self.client.embed_text(text, model=self.model)
        except Exception as e:
            return Err(f"Embedding call failed: {e}")
        if embedding is None:
            return Err("Embedding response had no vector")
        return Ok(embedding)

    def run(self) -> StageReport:
        report = StageReport(stage="vectorize")
        keys = self.enriched_store.keys()
        limit = len(keys) if self.options.limit is None else self.options.limit
        logger.info(f"Vectorizing {min(limit, len(keys))} decisions ({self.client.provider}:{self.model})")

        for i, key in enumerate(keys[:limit]):
            try:
                decision = EnrichedDecision.model_validate(self.enriched_store.read(key))
            except (OSError, ValueError) as e:
                logger.error(f"Unreadable enriched file {key}: {e}")
                report.record(Err(f"Unreadable enriched file {key}: {e}"))
                continue

            output_key = slugify(decision.decision_reference or key)
            if not self.options.force and self.vectors_store.exists(output_key):
                report.skip()
                continue

            result = self.create_embedding(embedding_text(decision))
            if result.is_ok():
                embedding = result.unwrap()
            else:
                logger.warning(f"Embedding failed for {key}: {result.unwrap_err()}")
                embedding = None
            report.record(result)

            vectorized = VectorizedDecision.from_enriched(decision, embedding, self.model)
            self.vectors_store.write(output_key, vectorized.to_json_dict())
            self.sleep(self.options.vector_delay_ms / 1000)

            if (i + 1) % 10 == 0:
                logger.info(f"Vectorized {i + 1}/{limit}")

        report.log_summary()
        return report
