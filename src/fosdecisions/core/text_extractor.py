"""
Pure text helpers for ombudsman decision documents.

Everything here works on plain strings: whitespace and outcome
normalization, regex metadata extraction from search-result text,
splitting full decision text into named sections, and date parsing.
"""

import re
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Dict, List, Optional

from fosdecisions.core.enums import Outcome, SectionKey

DECISION_REFERENCE_RE = re.compile(r"Decision Reference\s+([A-Z]{2,3}-\d+)\b", re.IGNORECASE)
BARE_REFERENCE_RE = re.compile(r"\b(DRN|DRS|DR)\s*[-]?\d+\b", re.IGNORECASE)
DATE_RE = re.compile(r"\b\d{1,2}\s+[A-Za-z]{3,}\s+\d{4}\b")
OUTCOME_RE = re.compile(r"\b(partially upheld|not upheld|upheld|not settled|settled)\b", re.IGNORECASE)
OMBUDSMAN_NAME_RE = re.compile(r"ombudsman\s*[:\-]\s*([A-Za-z .'-]{2,80})", re.IGNORECASE)
TEXT_REFERENCE_RE = re.compile(r"\b(DRN|DRS|DR)\s*[-]?[A-Z0-9]{3,}\b", re.IGNORECASE)

# First line of a section shorter than this is the heading restated
HEADING_LINE_MAX = 140

SECTION_HEADINGS: Dict[SectionKey, List[str]] = {
    SectionKey.COMPLAINT: ["the complaint", "complaint", "background", "what happened"],
    SectionKey.FIRM_RESPONSE: [
        "the business's response",
        "the firm's response",
        "the business said",
        "the firm said",
    ],
    SectionKey.OMBUDSMAN_REASONING: [
        "the ombudsman's decision",
        "my findings",
        "my analysis",
        "ombudsman decision",
        "what i consider",
    ],
    SectionKey.FINAL_DECISION: ["my final decision", "final decision", "my decision"],
}

DATE_FORMATS = ("%Y-%m-%d", "%d %B %Y", "%d %b %Y", "%d/%m/%Y", "%B %d, %Y")


@dataclass
class TextMetadata:
    """Fields recovered from free text; every one of them may be missing."""
    decision_reference: Optional[str] = None
    decision_date: Optional[str] = None
    outcome_raw: Optional[str] = None
    business_name: Optional[str] = None
    product_sector: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


def normalize_whitespace(text) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return re.sub(r"\s+", " ", str(text)).strip()


def normalize_outcome(value) -> Outcome:
    """
    Map a free-text outcome phrase onto the Outcome enum.

    The checks run in a fixed order so that "partially upheld" and
    "not upheld" never fall through to the plain "upheld" branch.
    """
    text = str(value or "").lower()
    if "part" in text and "upheld" in text:
        return Outcome.PARTIALLY_UPHELD
    if "not" in text and "upheld" in text:
        return Outcome.NOT_UPHELD
    if "upheld" in text:
        return Outcome.UPHELD
    if "settled" in text:
        return Outcome.SETTLED
    if "not" in text and "settled" in text:
        return Outcome.NOT_SETTLED
    return Outcome.UNKNOWN


def extract_metadata_from_text(text: Optional[str]) -> TextMetadata:
    """
    Best-effort metadata extraction from a search result's text.

    Business name and product/sector are sliced out positionally, assuming
    the text reads "<date> <business> <outcome> <sector> <reference>".
    When that ordering does not hold the positional fields stay None.
    """
    clean = normalize_whitespace(text or "")
    reference_match = DECISION_REFERENCE_RE.search(clean)
    fallback_match = BARE_REFERENCE_RE.search(clean)
    date_match = DATE_RE.search(clean)
    outcome_match = OUTCOME_RE.search(clean)

    if reference_match:
        decision_reference = reference_match.group(1)
    elif fallback_match:
        decision_reference = fallback_match.group(0)
    else:
        decision_reference = None

    metadata = TextMetadata(
        decision_reference=decision_reference,
        decision_date=date_match.group(0) if date_match else None,
        outcome_raw=outcome_match.group(0) if outcome_match else None,
    )

    if date_match and outcome_match and outcome_match.start() > date_match.start():
        metadata.business_name = clean[date_match.end():outcome_match.start()].strip() or None
        if decision_reference:
            reference_index = clean.find(decision_reference, outcome_match.start())
            if reference_index > outcome_match.start():
                metadata.product_sector = clean[outcome_match.end():reference_index].strip() or None

    return metadata


def _heading_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"(^|\n)\s*({re.escape(phrase)})\s*(\n|:|\r)", re.IGNORECASE)


SECTION_PATTERNS = [
    (key, _heading_pattern(phrase))
    for key, phrases in SECTION_HEADINGS.items()
    for phrase in phrases
]


def split_sections(text: Optional[str]) -> Dict[str, str]:
    """
    Split a decision's full text into its named sections.

    Every heading match of every section is collected and ordered by
    position. A section runs from its first heading to the next heading of
    any section (or the end of the text). Sections whose heading never
    appears are absent from the result.
    """
    normalized = str(text or "").replace("\r", "")

    matches = []
    for key, pattern in SECTION_PATTERNS:
        for match in pattern.finditer(normalized):
            matches.append((match.start(), key))
    matches.sort(key=lambda item: item[0])

    sections: Dict[str, str] = {}
    for i, (start, key) in enumerate(matches):
        if sections.get(key.value):
            continue
        end = matches[i + 1][0] if i + 1 < len(matches) else len(normalized)
        cleaned = normalized[start:end].strip()
        newline_index = cleaned.find("\n")
        if -1 < newline_index < HEADING_LINE_MAX:
            cleaned = cleaned[newline_index + 1:].strip()
        sections[key.value] = cleaned

    return sections


def extract_ombudsman_name(text: Optional[str]) -> Optional[str]:
    match = OMBUDSMAN_NAME_RE.search(str(text or ""))
    return match.group(1).strip() if match else None


def extract_decision_reference(text: Optional[str]) -> Optional[str]:
    match = TEXT_REFERENCE_RE.search(str(text or ""))
    return match.group(0).strip() if match else None


def parse_decision_date(value: Optional[str]) -> Optional[date]:
    """Parse the free-text dates found on the search page; None when unparseable."""
    if not value:
        return None
    text = normalize_whitespace(value)
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def slugify(value) -> str:
    """Lowercase and replace every non-alphanumeric run with a dash."""
    return re.sub(r"[^a-z0-9]+", "-", str(value).lower()).strip("-")
