"""Per-run pipeline options assembled by the CLI."""

from datetime import date
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from fosdecisions.core.text_extractor import parse_decision_date

DEFAULT_START_DATE = "2013-04-01"
STAGES: List[str] = ["discover", "parse", "enrich", "vectorize", "ingest"]


class PipelineOptions(BaseModel):
    """Knobs for a single pipeline run. Delays and waits are in milliseconds."""

    stages: List[str] = Field(default_factory=lambda: list(STAGES), description="Stages to run, canonical order")
    headless: bool = Field(default=True, description="Run the browser headless")
    start_date: Optional[str] = Field(default=DEFAULT_START_DATE, description="Earliest decision date (YYYY-MM-DD)")
    end_date: Optional[str] = Field(default=None, description="Latest decision date (YYYY-MM-DD)")
    query: Optional[str] = Field(default=None, description="Free-text search query")
    max_pages: Optional[int] = Field(default=None, ge=1, description="Stop discovery after this many pages")
    max_results: Optional[int] = Field(default=None, ge=1, description="Stop discovery after this many rows")
    limit: Optional[int] = Field(default=None, ge=0, description="Per-stage record limit")
    download_delay_ms: int = Field(default=500, ge=0)
    enrich_delay_ms: int = Field(default=1200, ge=0)
    vector_delay_ms: int = Field(default=800, ge=0)
    page_wait_ms: int = Field(default=1200, ge=0)
    force: bool = Field(default=False, description="Overwrite existing stage output")
    append: bool = Field(default=False, description="Append discovery rows to the index")
    index_path: Optional[Path] = Field(default=None, description="Override for decisions-index.jsonl")
    pdf_dir: Optional[Path] = Field(default=None, description="Override for the PDF cache directory")
    enrich_provider: Optional[str] = Field(default=None, description="openai or openrouter")
    enrich_model: Optional[str] = Field(default=None)
    embedding_provider: Optional[str] = Field(default=None, description="openai or openrouter")
    embedding_model: Optional[str] = Field(default=None)

    @field_validator("start_date", "end_date", "query", "enrich_provider", "enrich_model",
                     "embedding_provider", "embedding_model", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def start(self) -> Optional[date]:
        return parse_decision_date(self.start_date)

    @property
    def end(self) -> Optional[date]:
        return parse_decision_date(self.end_date)

    def in_date_range(self, value: Optional[str]) -> bool:
        """Date filter for parse; records with an unparseable date always pass."""
        parsed = parse_decision_date(value)
        if parsed is None:
            return True
        if self.start and parsed < self.start:
            return False
        if self.end and parsed > self.end:
            return False
        return True
