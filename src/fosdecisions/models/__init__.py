"""
Domain models for the decisions pipeline.

- Stage models (DecisionRecord, ParsedDecision, EnrichedDecision, VectorizedDecision)
- LLM extraction result (DecisionInsights)
- Run options (PipelineOptions)
- Backfill state (BackfillState, BackfillWindow, WindowStatus)
- Enums (Outcome, SectionKey)
"""

from fosdecisions.core.enums import Outcome, SectionKey

from fosdecisions.models.decision import (
    DecisionRecord,
    ParsedDecision,
    DecisionInsights,
    EnrichedDecision,
    VectorizedDecision,
)

from fosdecisions.models.options import (
    DEFAULT_START_DATE,
    STAGES,
    PipelineOptions,
)

from fosdecisions.models.backfill import (
    BackfillState,
    BackfillWindow,
    WindowStatus,
)

__all__ = [
    "Outcome",
    "SectionKey",
    "DecisionRecord",
    "ParsedDecision",
    "DecisionInsights",
    "EnrichedDecision",
    "VectorizedDecision",
    "DEFAULT_START_DATE",
    "STAGES",
    "PipelineOptions",
    "BackfillState",
    "BackfillWindow",
    "WindowStatus",
]
