"""
Enrich stage: structured extraction from parsed decisions with an LLM.

Each parsed decision is condensed into a labelled prompt (metadata plus the
four sections) and sent to the chat model with a fixed JSON schema. The
first ``{...}`` span of the reply is validated as DecisionInsights. When
the call, the JSON or the validation fails, the record still gets written
with neutral insights so downstream stages can run.
"""

import json
import re
import time
from typing import Callable, Optional

from loguru import logger
from neopipe import Result, Ok, Err
from pydantic import ValidationError

from fosdecisions.core.enums import SectionKey
from fosdecisions.core.text_extractor import slugify
from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.llm.base import BaseChatClient
from fosdecisions.llm.factory import LLMClientFactory
from fosdecisions.models.decision import DecisionInsights, EnrichedDecision, ParsedDecision
from fosdecisions.models.options import PipelineOptions
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport

PROMPT_CHAR_LIMIT = 16000
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = (
    "You are extracting structured fields from anonymized UK Financial Ombudsman final decisions. "
    "Return ONLY valid JSON. Do not include extra commentary or markdown."
)

SCHEMA_PROMPT = """Schema:
{
  "precedents_cited": string[],
  "root_cause_tags": string[],
  "decision_logic": string,
  "vulnerability_flags": string[],
  "ombudsman_name": string | null,
  "outcome": "upheld" | "not_upheld" | "partially_upheld" | "settled" | "not_settled" | "unknown",
  "product_sector": string | null
}"""

SECTION_LABELS = [
    (SectionKey.COMPLAINT, "Complaint"),
    (SectionKey.FIRM_RESPONSE, "Firm response"),
    (SectionKey.OMBUDSMAN_REASONING, "Ombudsman reasoning"),
    (SectionKey.FINAL_DECISION, "Final decision"),
]


def build_enrichment_prompt(decision: ParsedDecision) -> str:
    """Labelled metadata followed by each section, capped at 16,000 characters."""
    lines = [
        f"Decision reference: {decision.decision_reference or 'unknown'}",
        f"Decision date: {decision.decision_date or 'unknown'}",
        f"Business name: {decision.business_name or 'unknown'}",
        f"Product/sector: {decision.product_sector or 'unknown'}",
        f"Outcome: {decision.outcome or decision.outcome_raw or 'unknown'}",
    ]
    for key, label in SECTION_LABELS:
        lines.append(f"--- {label} ---")
        lines.append(decision.sections.get(key) or "(missing)")
    return "\n".join(lines)[:PROMPT_CHAR_LIMIT]


def extract_json_object(text: Optional[str]) -> Optional[dict]:
    """Decode the widest ``{...}`` span of a reply; None when absent or invalid."""
    if not text:
        return None
    match = JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


class EnrichService(ServiceFactoryABC["EnrichService"]):
    """Adds LLM insights to parsed decisions."""

    def __init__(
        self,
        client: BaseChatClient,
        parsed_store: JsonDirectoryStore,
        enriched_store: JsonDirectoryStore,
        options: PipelineOptions,
        model: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize enrichment service.

        Args:
            client: Chat client implementing BaseChatClient interface
            parsed_store: Source of parsed decisions
            enriched_store: Destination for enriched decisions
            options: Run options (limit, force, delay)
            model: Chat model; the client's default when omitted
            sleep: Delay function, replaced in tests
        """
        self.client = client
        self.parsed_store = parsed_store
        self.enriched_store = enriched_store
        self.options = options
        self.model = model
        self.sleep = sleep

    @classmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> "EnrichService":
        """
        Raises:
            ValueError: Unknown provider or no API key for it
        """
        options = options or PipelineOptions()
        layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        provider = options.enrich_provider or LLMClientFactory.default_provider()
        model = options.enrich_model or LLMClientFactory.default_chat_model(provider)
        client = LLMClientFactory.create_chat_client(provider, model=model)
        return cls(
            client=client,
            parsed_store=JsonDirectoryStore(layout.parsed_dir),
            enriched_store=JsonDirectoryStore(layout.enriched_dir),
            options=options,
            model=model,
        )

    def extract_insights(self, decision: ParsedDecision) -> Result[DecisionInsights, str]:
        """
        Ask the model for structured insights.

        Returns:
            Result[DecisionInsights, str]: Ok with validated insights or Err with the failure reason
        """
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"{SCHEMA_PROMPT}\n\nDecision text:\n{build_enrichment_prompt(decision)}"},
        ]
        try:
            content = self.client.chat(messages, model=self.model, temperature=0.2, max_tokens=700)
        except Exception as e:
            return Err(f"LLM call failed: {e}")

        payload = extract_json_object(content)
        if payload is None:
            return Err("No JSON object in LLM response")
        try:
            return Ok(DecisionInsights.model_validate(payload))
        except ValidationError as e:
            return Err(f"LLM response failed validation: {e.error_count()} errors")

    def enrich(self, decision: ParsedDecision, source_key: str) -> EnrichedDecision:
        """Enriched decision; neutral insights when extraction fails."""
        result = self.extract_insights(decision)
        if result.is_ok():
            insights = result.unwrap()
        else:
            logger.warning(f"AI enrichment failed for {source_key}: {result.unwrap_err()}")
            insights = DecisionInsights.neutral(decision.outcome, decision.product_sector)
        return EnrichedDecision.from_parsed(decision, insights)

    def run(self) -> StageReport:
        report = StageReport(stage="enrich")
        keys = self.parsed_store.keys()
        limit = len(keys) if self.options.limit is None else self.options.limit
        logger.info(f"Enriching {min(limit, len(keys))} decisions via LLM")

        for i, key in enumerate(keys[:limit]):
            try:
                decision = ParsedDecision.model_validate(self.parsed_store.read(key))
            except (OSError, ValueError) as e:
                logger.error(f"Unreadable parsed file {key}: {e}")
                report.record(Err(f"Unreadable parsed file {key}: {e}"))
                continue

            output_key = slugify(decision.decision_reference or key)
            if not self.options.force and self.enriched_store.exists(output_key):
                report.skip()
                continue

            enriched = self.enrich(decision, key)
            self.enriched_store.write(output_key, enriched.to_json_dict())
            report.processed += 1
            self.sleep(self.options.enrich_delay_ms / 1000)

            if (i + 1) % 10 == 0:
                logger.info(f"Enriched {i + 1}/{limit}")

        report.log_summary()
        return report
