"""
Ingest stage: upsert vectorized decisions into the fos_decisions table.

Each file is flattened into one row keyed by decision_reference. List
fields and the embedding are stored as JSON text. A row that fails to
write is logged and the stage moves on to the next file.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loguru import logger
from neopipe import Err

from fosdecisions.core.enums import SectionKey
from fosdecisions.core.text_extractor import parse_decision_date
from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.adapters.postgres_decision_adapter import PostgreSQLDecisionAdapter
from fosdecisions.dbs.interfaces.decision_store import AbstractDecisionRepository
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.dbs.postgres_db import PostgreSQLDatabase
from fosdecisions.models.decision import VectorizedDecision
from fosdecisions.models.options import PipelineOptions
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport
from fosdecisions.utils.settings.factory import settings_factory


def flatten_decision(decision: VectorizedDecision) -> Dict[str, Any]:
    """Map a vectorized decision onto fos_decisions columns."""
    ai = decision.ai
    now = datetime.now(timezone.utc)
    return {
        "decision_reference": decision.decision_reference,
        "decision_date": parse_decision_date(decision.decision_date),
        "business_name": decision.business_name or None,
        "product_sector": decision.product_sector or ai.product_sector or None,
        "outcome": str(ai.outcome or decision.outcome),
        "ombudsman_name": decision.ombudsman_name or ai.ombudsman_name or None,
        "source_url": decision.source_url or None,
        "pdf_url": decision.pdf_url or None,
        "pdf_sha256": decision.pdf_sha256 or None,
        "full_text": decision.full_text or None,
        "complaint_text": decision.sections.get(SectionKey.COMPLAINT) or None,
        "firm_response_text": decision.sections.get(SectionKey.FIRM_RESPONSE) or None,
        "ombudsman_reasoning_text": decision.sections.get(SectionKey.OMBUDSMAN_REASONING) or None,
        "final_decision_text": decision.sections.get(SectionKey.FINAL_DECISION) or None,
        "decision_summary": ai.decision_logic or None,
        "precedents": json.dumps(ai.precedents_cited),
        "root_cause_tags": json.dumps(ai.root_cause_tags),
        "vulnerability_flags": json.dumps(ai.vulnerability_flags),
        "decision_logic": ai.decision_logic or None,
        "embedding": json.dumps(decision.embedding) if decision.embedding else None,
        "embedding_model": decision.embedding_model or None,
        "embedding_dim": decision.embedding_dim or None,
        "created_at": now,
        "updated_at": now,
    }


class IngestService(ServiceFactoryABC["IngestService"]):
    """Loads vectorized decisions into the relational table."""

    def __init__(
        self,
        repository: AbstractDecisionRepository,
        vectors_store: JsonDirectoryStore,
        options: PipelineOptions,
        database: Optional[PostgreSQLDatabase] = None,
    ):
        self.repository = repository
        self.vectors_store = vectors_store
        self.options = options
        self.database = database

    @classmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> "IngestService":
        """
        Raises:
            ValueError: If DATABASE_URL is not configured
        """
        options = options or PipelineOptions()
        layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        database = PostgreSQLDatabase(settings_factory.create_database_settings())
        return cls(
            repository=PostgreSQLDecisionAdapter(database),
            vectors_store=JsonDirectoryStore(layout.vectors_dir),
            options=options,
            database=database,
        )

    def run(self) -> StageReport:
        report = StageReport(stage="ingest")
        keys = self.vectors_store.keys()
        limit = len(keys) if self.options.limit is None else self.options.limit
        logger.info(f"Ingesting {min(limit, len(keys))} decisions into the database")

        try:
            for i, key in enumerate(keys[:limit]):
                try:
                    decision = VectorizedDecision.model_validate(self.vectors_store.read(key))
                except (OSError, ValueError) as e:
                    logger.error(f"Unreadable vectors file {key}: {e}")
                    report.record(Err(f"Unreadable vectors file {key}: {e}"))
                    continue

                if not decision.decision_reference:
                    logger.warning(f"Skipping {key}: no decision reference")
                    report.skip()
                    continue

                result = self.repository.upsert(flatten_decision(decision))
                if result.is_err():
                    logger.error(result.unwrap_err())
                report.record(result)

                if (i + 1) % 10 == 0:
                    logger.info(f"Ingested {i + 1}/{limit}")
        finally:
            if self.database:
                self.database.close()

        report.log_summary()
        return report
