from enum import StrEnum


class Outcome(StrEnum):
    """Normalized complaint outcome"""
    UPHELD = "upheld"
    NOT_UPHELD = "not_upheld"
    PARTIALLY_UPHELD = "partially_upheld"
    SETTLED = "settled"
    NOT_SETTLED = "not_settled"
    UNKNOWN = "unknown"


class SectionKey(StrEnum):
    """Named sections of a decision's full text"""
    COMPLAINT = "complaint"
    FIRM_RESPONSE = "firm_response"
    OMBUDSMAN_REASONING = "ombudsman_reasoning"
    FINAL_DECISION = "final_decision"
