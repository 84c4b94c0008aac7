"""
Decision domain models, one per pipeline stage.

Each stage's model extends the previous one so a record keeps every field
it picked up on the way through the pipeline:
- DecisionRecord: one search result from discovery (index line)
- ParsedDecision: record + cached PDF, hash, full text and sections
- DecisionInsights: structured fields extracted by the LLM
- EnrichedDecision: parsed decision + insights
- VectorizedDecision: enriched decision + embedding
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from loguru import logger

from fosdecisions.core.enums import Outcome, SectionKey
from fosdecisions.core.text_extractor import normalize_outcome
from fosdecisions.utils.file_utils import read_json, write_json

M = TypeVar("M", bound="DecisionRecord")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_outcome(value: Any) -> Outcome:
    """Accept enum members and their values; normalize any other text."""
    if isinstance(value, Outcome):
        return value
    if isinstance(value, str) and value in Outcome._value2member_map_:
        return Outcome(value)
    return normalize_outcome(value)


class DecisionRecord(BaseModel):
    """One decision as found on the search results page."""
    model_config = ConfigDict(extra="ignore")

    decision_reference: Optional[str] = Field(default=None, description="Natural key, e.g. DRN1234567")
    decision_date: Optional[str] = Field(default=None, description="Decision date as displayed (free text)")
    business_name: Optional[str] = Field(default=None, description="Respondent firm")
    product_sector: Optional[str] = Field(default=None, description="Product or sector tag")
    outcome: Outcome = Field(default=Outcome.UNKNOWN, description="Normalized outcome")
    outcome_raw: Optional[str] = Field(default=None, description="Outcome phrase as displayed")
    page_count: Optional[int] = Field(default=None, description="Page count from the result description")
    snippet: Optional[str] = Field(default=None, description="Result description text")
    source_url: Optional[str] = Field(default=None, description="Page the result links to")
    pdf_url: Optional[str] = Field(default=None, description="Direct PDF link")
    link_text: Optional[str] = Field(default=None, description="Anchor text of the PDF link")
    raw_text: Optional[str] = Field(default=None, description="Normalized text of the result container")
    scraped_at: Optional[datetime] = Field(default=None, description="Discovery timestamp")

    @field_validator("outcome", mode="before")
    @classmethod
    def _normalize_outcome(cls, value):
        return coerce_outcome(value)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def save_json(self, file_path: str | Path) -> Path:
        """Save as pretty JSON with a trailing newline."""
        return write_json(file_path, self.to_json_dict())

    @classmethod
    def load_json(cls: Type[M], file_path: str | Path) -> M:
        """Load a stage file into this model."""
        path = Path(file_path)
        data = read_json(path)
        logger.debug(f"Loaded {cls.__name__} from {path}")
        return cls.model_validate(data)


class ParsedDecision(DecisionRecord):
    """Decision whose PDF has been downloaded, hashed and read."""
    pdf_path: str = Field(..., description="Cached PDF path (relative to the working directory when beneath it)")
    pdf_sha256: str = Field(..., description="SHA-256 of the cached PDF bytes")
    full_text: str = Field(default="", description="Extracted PDF text")
    sections: Dict[SectionKey, str] = Field(default_factory=dict, description="Named sections found in the text")
    ombudsman_name: Optional[str] = Field(default=None, description="Ombudsman named in the text")
    parsed_at: datetime = Field(default_factory=utc_now, description="Parse timestamp")

    @field_validator("sections", mode="before")
    @classmethod
    def _drop_unknown_sections(cls, value):
        if not isinstance(value, dict):
            return {}
        return {key: text for key, text in value.items() if key in SectionKey._value2member_map_}

    def section(self, key: SectionKey) -> Optional[str]:
        return self.sections.get(key)

    @classmethod
    def from_record(cls, record: DecisionRecord, **fields) -> "ParsedDecision":
        return cls(**{**record.model_dump(), **fields})


class DecisionInsights(BaseModel):
    """Structured fields extracted from a decision by the LLM."""
    model_config = ConfigDict(extra="ignore")

    precedents_cited: List[str] = Field(default_factory=list, description="Rules, guidance or cases cited")
    root_cause_tags: List[str] = Field(default_factory=list, description="Short root-cause labels")
    decision_logic: str = Field(default="", description="Short summary of the reasoning")
    vulnerability_flags: List[str] = Field(default_factory=list, description="Customer vulnerability indicators")
    ombudsman_name: Optional[str] = Field(default=None, description="Deciding ombudsman")
    outcome: Outcome = Field(default=Outcome.UNKNOWN, description="Outcome as read by the LLM")
    product_sector: Optional[str] = Field(default=None, description="Product or sector as read by the LLM")

    @field_validator("precedents_cited", "root_cause_tags", "vulnerability_flags", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    @field_validator("decision_logic", mode="before")
    @classmethod
    def _null_logic(cls, value):
        return "" if value is None else value

    @field_validator("outcome", mode="before")
    @classmethod
    def _normalize_outcome(cls, value):
        return coerce_outcome(value)

    @classmethod
    def neutral(cls, outcome: Outcome = Outcome.UNKNOWN, product_sector: Optional[str] = None) -> "DecisionInsights":
        """Empty insights carrying over what the record already knows."""
        return cls(outcome=outcome, product_sector=product_sector)


class EnrichedDecision(ParsedDecision):
    """Parsed decision with LLM insights attached."""
    ai: DecisionInsights = Field(default_factory=DecisionInsights, description="LLM extraction result")
    enriched_at: datetime = Field(default_factory=utc_now, description="Enrichment timestamp")

    @classmethod
    def from_parsed(cls, parsed: ParsedDecision, ai: DecisionInsights) -> "EnrichedDecision":
        return cls(**{**parsed.model_dump(), "ai": ai})


class VectorizedDecision(EnrichedDecision):
    """Enriched decision with its embedding (None when embedding failed)."""
    embedding: Optional[List[float]] = Field(default=None, description="Embedding vector")
    embedding_model: str = Field(..., description="Embedding model requested")
    embedding_dim: Optional[int] = Field(default=None, description="Length of the embedding")
    vectorized_at: datetime = Field(default_factory=utc_now, description="Vectorization timestamp")

    @classmethod
    def from_enriched(
        cls, enriched: EnrichedDecision, embedding: Optional[List[float]], embedding_model: str
    ) -> "VectorizedDecision":
        return cls(
            **enriched.model_dump(),
            embedding=embedding,
            embedding_model=embedding_model,
            embedding_dim=len(embedding) if embedding is not None else None,
        )
