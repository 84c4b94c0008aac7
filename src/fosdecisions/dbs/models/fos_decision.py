"""Relational model for ingested ombudsman decisions."""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import SQLModel, Field

# Columns refreshed by every upsert besides updated_at
UPSERT_COLUMNS = (
    "decision_date",
    "business_name",
    "product_sector",
    "outcome",
    "ombudsman_name",
    "source_url",
    "pdf_url",
    "pdf_sha256",
    "full_text",
    "complaint_text",
    "firm_response_text",
    "ombudsman_reasoning_text",
    "final_decision_text",
    "decision_summary",
    "precedents",
    "root_cause_tags",
    "vulnerability_flags",
    "decision_logic",
    "embedding",
    "embedding_model",
    "embedding_dim",
)


def _text(description: str):
    return Field(default=None, sa_column=Column(Text, nullable=True), description=description)


class FosDecision(SQLModel, table=True):
    """One published ombudsman decision, keyed by its reference.

    List fields and the embedding are stored as JSON text.
    """

    __tablename__ = "fos_decisions"

    decision_reference: str = Field(primary_key=True, max_length=64, description="Decision reference, e.g. DRN1234567")
    decision_date: Optional[date] = Field(default=None, index=True, description="Date of the decision")
    business_name: Optional[str] = _text("Respondent firm")
    product_sector: Optional[str] = _text("Product or sector")
    outcome: Optional[str] = Field(default=None, max_length=32, index=True, description="Normalized outcome")
    ombudsman_name: Optional[str] = _text("Deciding ombudsman")
    source_url: Optional[str] = _text("Search result URL")
    pdf_url: Optional[str] = _text("PDF URL")
    pdf_sha256: Optional[str] = Field(default=None, max_length=64, description="SHA-256 of the PDF bytes")
    full_text: Optional[str] = _text("Extracted PDF text")
    complaint_text: Optional[str] = _text("Complaint section")
    firm_response_text: Optional[str] = _text("Firm response section")
    ombudsman_reasoning_text: Optional[str] = _text("Ombudsman reasoning section")
    final_decision_text: Optional[str] = _text("Final decision section")
    decision_summary: Optional[str] = _text("LLM summary of the reasoning")
    precedents: Optional[str] = _text("JSON list of precedents cited")
    root_cause_tags: Optional[str] = _text("JSON list of root-cause tags")
    vulnerability_flags: Optional[str] = _text("JSON list of vulnerability flags")
    decision_logic: Optional[str] = _text("LLM decision logic")
    embedding: Optional[str] = _text("JSON embedding vector")
    embedding_model: Optional[str] = Field(default=None, max_length=128, description="Embedding model")
    embedding_dim: Optional[int] = Field(default=None, description="Embedding length")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Record creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Record last update timestamp"
    )
