"""Database models"""

from fosdecisions.dbs.models.fos_decision import FosDecision, UPSERT_COLUMNS

__all__ = ["FosDecision", "UPSERT_COLUMNS"]
