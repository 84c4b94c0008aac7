"""Pure helpers shared by every pipeline stage."""

from fosdecisions.core.enums import Outcome, SectionKey
from fosdecisions.core.dedupe import dedupe_by_key, record_identity, record_url
from fosdecisions.core.strategies import run_first
from fosdecisions.core.text_extractor import (
    TextMetadata,
    extract_decision_reference,
    extract_metadata_from_text,
    extract_ombudsman_name,
    normalize_outcome,
    normalize_whitespace,
    parse_decision_date,
    slugify,
    split_sections,
)

__all__ = [
    "Outcome",
    "SectionKey",
    "TextMetadata",
    "dedupe_by_key",
    "record_identity",
    "record_url",
    "run_first",
    "extract_decision_reference",
    "extract_metadata_from_text",
    "extract_ombudsman_name",
    "normalize_outcome",
    "normalize_whitespace",
    "parse_decision_date",
    "slugify",
    "split_sections",
]
